"""原始领域事件 -- 以 kind 为 discriminator 的 tagged union

各实时通道（IoT 生命体征、CCTV、急救上报、物资、床位）送入的
原始载荷在 EventClassifier 边界处解析为以下类型之一。
缺少必填字段的载荷解析失败，由分类器按 MalformedEvent 处理。
"""

from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from .enums import BedStatus, SourceKind


def _as_title_case(value: Any) -> Any:
    """枚举字段大小写容错：'critical' -> 'Critical'"""
    if isinstance(value, str):
        return value.strip().capitalize()
    return value


class RawEventBase(BaseModel):
    """原始事件公共字段"""

    model_config = ConfigDict(extra="ignore")

    occurred_at: datetime = Field(description="事件发生时间")

    @field_validator("occurred_at")
    @classmethod
    def ensure_aware(cls, value: datetime) -> datetime:
        # 无时区的时间按 UTC 解释
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def source_kind(self) -> SourceKind:
        return SourceKind(self.kind)  # type: ignore[attr-defined]


class VitalsReading(RawEventBase):
    """IoT 生命体征读数

    至少包含一项测量值。blood_pressure 形如 "135/85"，
    在未提供 systolic_bp 时用于解析收缩压。
    """

    kind: Literal["Vitals"] = "Vitals"
    device_id: str = Field(min_length=1)
    location: str = Field(min_length=1, description="病房/区域标识")
    subject_id: str | None = Field(default=None, description="患者 ID")
    heart_rate: float | None = Field(default=None, ge=0, description="心率（bpm）")
    spo2: float | None = Field(default=None, ge=0, le=100, description="血氧饱和度（%）")
    systolic_bp: float | None = Field(default=None, ge=0, description="收缩压（mmHg）")
    temperature_f: float | None = Field(default=None, description="体温（°F）")
    blood_pressure: str | None = Field(default=None, description="血压字符串")

    @model_validator(mode="after")
    def check_measurements(self) -> "VitalsReading":
        if self.systolic_bp is None and self.blood_pressure:
            head = self.blood_pressure.split("/", 1)[0].strip()
            try:
                self.systolic_bp = float(head)
            except ValueError as e:
                raise ValueError(
                    f"unparseable blood_pressure: {self.blood_pressure!r}"
                ) from e
        if all(
            v is None
            for v in (self.heart_rate, self.spo2, self.systolic_bp, self.temperature_f)
        ):
            raise ValueError("vitals reading carries no measurement")
        return self


class CCTVDetection(RawEventBase):
    """CCTV 检测事件，location 缺省时使用摄像头 ID"""

    kind: Literal["CCTVDetection"] = "CCTVDetection"
    camera_id: str = Field(min_length=1)
    detection_type: str = Field(min_length=1, description="检测类型，如 Fall Detected")
    location: str | None = Field(default=None)
    confidence: float | None = Field(default=None, ge=0, le=1)

    @model_validator(mode="after")
    def default_location(self) -> "CCTVDetection":
        if not self.location:
            self.location = self.camera_id
        return self


class EmergencyReport(RawEventBase):
    """急救上报记录"""

    kind: Literal["EmergencyReport"] = "EmergencyReport"
    location: str = Field(min_length=1)
    emergency_type: str = Field(min_length=1, description="如 Code Blue")
    # 上报方自由填写（如 Severe、P1），仅 critical 有特殊含义
    severity: str | None = Field(default=None, description="上报方标注的严重程度")
    details: str = Field(default="")
    subject_id: str | None = Field(default=None)

    @field_validator("severity", mode="before")
    @classmethod
    def stringify_severity(cls, value: Any) -> Any:
        # 数据库列可能给出数字等非字符串值
        if value is None or isinstance(value, str):
            return value
        return str(value)


class SupplyLevel(RawEventBase):
    """物资库存读数"""

    kind: Literal["SupplyShortage"] = "SupplyShortage"
    supply_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    quantity: float = Field(ge=0)
    threshold: float = Field(gt=0, description="补货阈值")
    location: str = Field(default="Supply Room", min_length=1)


class BedObservation(RawEventBase):
    """床位观测

    cleaning_cycles 为该床位连续处于 Cleaning 的观测周期数，
    由 BedTurnoverTracker 在轮询时累计。
    """

    kind: Literal["BedTurnover"] = "BedTurnover"
    bed_id: str = Field(min_length=1)
    ward: str = Field(min_length=1)
    status: BedStatus
    cleaning_cycles: int = Field(default=0, ge=0)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _as_title_case(value)


RawEvent = Annotated[
    VitalsReading | CCTVDetection | EmergencyReport | SupplyLevel | BedObservation,
    Field(discriminator="kind"),
]

_RAW_EVENT_ADAPTER: TypeAdapter[RawEvent] = TypeAdapter(RawEvent)


def parse_raw_event(payload: Any) -> RawEvent:
    """将原始载荷解析为具体事件类型

    Raises:
        pydantic.ValidationError: 载荷缺少 kind 或对应类型的必填字段
    """
    return _RAW_EVENT_ADAPTER.validate_python(payload)
