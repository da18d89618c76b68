import enum


class MeasurementMode(enum.Enum):
    BASELINE = 'BASELINE'
    REGULAR = 'REGULAR'

    @classmethod
    def from_baseline(cls, baseline: bool) -> 'MeasurementMode':
        return cls.BASELINE if baseline else cls.REGULAR
