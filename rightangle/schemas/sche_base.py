from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class ResponseSchemaBase(BaseModel):
    success: bool = True
    code: str = ''
    message: str = ''

    def custom_response(self, code: str, message: str):
        self.code = code
        self.message = message
        return self

    def success_response(self):
        self.success = True
        self.code = '000'
        self.message = 'Success'
        return self


class DataResponse(BaseModel, Generic[T]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool = True
    code: str = ''
    message: str = ''
    data: Optional[T] = None

    def custom_response(self, code: str, message: str, data: T):
        self.code = code
        self.message = message
        self.data = data
        return self

    def success_response(self, data: T):
        self.success = True
        self.code = '000'
        self.message = 'Success'
        self.data = data
        return self
