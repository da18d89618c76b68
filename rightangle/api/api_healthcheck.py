from fastapi import APIRouter

from rightangle.schemas.sche_base import ResponseSchemaBase

router = APIRouter()


@router.get("", response_model=ResponseSchemaBase)
async def get():
    return ResponseSchemaBase().success_response()
