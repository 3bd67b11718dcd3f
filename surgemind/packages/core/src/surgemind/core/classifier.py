"""EventClassifier -- 原始事件 -> Trigger

在边界处把原始载荷解析为 tagged union，再按来源类型套用阈值策略。
阈值数值是运营策略，修改需经临床确认。

classify() 返回 None 的两种情况：
1. 载荷合法但未达到处理阈值（debug 日志 event_not_actionable）
2. 载荷不合法（warning 日志 malformed_event，数据质量告警）
"""

from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from .exceptions import MalformedEventError
from .models import (
    BedObservation,
    BedStatus,
    CCTVDetection,
    EmergencyReport,
    RawEvent,
    Severity,
    SupplyLevel,
    Trigger,
    VitalsReading,
    max_severity,
    parse_raw_event,
)

log = structlog.get_logger()

# 生命体征阈值
HEART_RATE_HIGH = 120
HEART_RATE_LOW = 50
SPO2_CRITICAL = 90
SPO2_LOW = 92
SYSTOLIC_HIGH = 140
SYSTOLIC_LOW = 110
TEMPERATURE_HIGH_F = 100.4
TEMPERATURE_LOW_F = 97

# 物资：低于阈值此比例视为严重短缺
SUPPLY_SEVERE_RATIO = 0.5

# 床位：连续处于 Cleaning 的观测周期数
BED_CLEANING_CYCLES = 2

# CCTV 检测类型关键字（小写子串匹配，按顺序取第一个命中）
CCTV_RULES: list[tuple[tuple[str, ...], Severity]] = [
    (("fall",), Severity.CRITICAL),
    (("agitation", "fight"), Severity.HIGH),
    (("crowd",), Severity.MEDIUM),
]


def _fmt(value: float) -> str:
    return f"{value:g}"


def parse_event(raw: Mapping[str, Any] | RawEvent) -> RawEvent:
    """解析原始载荷

    Raises:
        MalformedEventError: 载荷缺少 kind 或必填字段
    """
    if isinstance(
        raw, VitalsReading | CCTVDetection | EmergencyReport | SupplyLevel | BedObservation
    ):
        return raw
    try:
        return parse_raw_event(raw)
    except ValidationError as e:
        kind = raw.get("kind") if isinstance(raw, Mapping) else None
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise MalformedEventError(kind, errors) from e


class EventClassifier:
    """事件分类器

    纯函数式：相同输入始终得到相同 Trigger，不依赖墙钟时间。
    """

    def parse(self, raw: Mapping[str, Any] | RawEvent) -> RawEvent | None:
        """解析原始载荷，不合法时记录数据质量告警并返回 None"""
        try:
            return parse_event(raw)
        except MalformedEventError as e:
            log.warning("malformed_event", kind=e.kind, errors=e.errors)
            return None

    def classify(self, raw: Mapping[str, Any] | RawEvent) -> Trigger | None:
        """将原始事件映射为 Trigger

        Args:
            raw: 原始载荷（dict）或已解析的事件

        Returns:
            Trigger，或 None（不需要处理 / 载荷不合法）
        """
        event = self.parse(raw)
        if event is None:
            return None

        match event:
            case VitalsReading():
                trigger = self._classify_vitals(event)
            case CCTVDetection():
                trigger = self._classify_cctv(event)
            case EmergencyReport():
                trigger = self._classify_emergency(event)
            case SupplyLevel():
                trigger = self._classify_supply(event)
            case BedObservation():
                trigger = self._classify_bed(event)

        if trigger is None:
            log.debug("event_not_actionable", kind=event.kind)
        return trigger

    @staticmethod
    def _classify_vitals(event: VitalsReading) -> Trigger | None:
        """多个阈值同时触发时取最高严重程度"""
        fired: list[tuple[Severity, str]] = []

        hr = event.heart_rate
        if hr is not None:
            if hr > HEART_RATE_HIGH:
                fired.append((Severity.HIGH, f"heart rate {_fmt(hr)} bpm above {HEART_RATE_HIGH}"))
            elif hr < HEART_RATE_LOW:
                fired.append((Severity.HIGH, f"heart rate {_fmt(hr)} bpm below {HEART_RATE_LOW}"))

        spo2 = event.spo2
        if spo2 is not None:
            if spo2 < SPO2_CRITICAL:
                fired.append((Severity.CRITICAL, f"SpO2 {_fmt(spo2)}% below {SPO2_CRITICAL}%"))
            elif spo2 < SPO2_LOW:
                fired.append((Severity.MEDIUM, f"SpO2 {_fmt(spo2)}% below {SPO2_LOW}%"))

        sbp = event.systolic_bp
        if sbp is not None:
            if sbp > SYSTOLIC_HIGH:
                fired.append((Severity.MEDIUM, f"systolic BP {_fmt(sbp)} mmHg above {SYSTOLIC_HIGH}"))
            elif sbp < SYSTOLIC_LOW:
                fired.append((Severity.MEDIUM, f"systolic BP {_fmt(sbp)} mmHg below {SYSTOLIC_LOW}"))

        temp = event.temperature_f
        if temp is not None:
            if temp > TEMPERATURE_HIGH_F:
                fired.append((Severity.MEDIUM, f"temperature {_fmt(temp)}°F above {TEMPERATURE_HIGH_F}°F"))
            elif temp < TEMPERATURE_LOW_F:
                fired.append((Severity.MEDIUM, f"temperature {_fmt(temp)}°F below {TEMPERATURE_LOW_F}°F"))

        if not fired:
            return None

        return Trigger(
            source_kind=event.source_kind,
            severity=max_severity(*(severity for severity, _ in fired)),
            location=event.location,
            subject_id=event.subject_id or event.device_id,
            occurred_at=event.occurred_at,
            findings=[finding for _, finding in fired],
        )

    @staticmethod
    def _classify_cctv(event: CCTVDetection) -> Trigger | None:
        """普通人员检测等其他类型仅作信息展示，不产生 Trigger"""
        detection = event.detection_type.lower()
        for keywords, severity in CCTV_RULES:
            if any(keyword in detection for keyword in keywords):
                return Trigger(
                    source_kind=event.source_kind,
                    severity=severity,
                    location=event.location or event.camera_id,
                    subject_id=event.camera_id,
                    occurred_at=event.occurred_at,
                    findings=[f"{event.detection_type} on camera {event.camera_id}"],
                )
        return None

    @staticmethod
    def _classify_emergency(event: EmergencyReport) -> Trigger:
        # 急救事件严重程度下限为 High
        flag = (event.severity or "").strip().lower()
        severity = Severity.CRITICAL if flag == "critical" else Severity.HIGH
        findings = [f"{event.emergency_type} reported"]
        if event.details:
            findings.append(event.details)
        return Trigger(
            source_kind=event.source_kind,
            severity=severity,
            location=event.location,
            subject_id=event.subject_id,
            occurred_at=event.occurred_at,
            findings=findings,
        )

    @staticmethod
    def _classify_supply(event: SupplyLevel) -> Trigger | None:
        if event.quantity >= event.threshold:
            return None
        if event.quantity >= event.threshold * SUPPLY_SEVERE_RATIO:
            severity = Severity.MEDIUM
        else:
            severity = Severity.HIGH
        return Trigger(
            source_kind=event.source_kind,
            severity=severity,
            location=event.location,
            subject_id=event.supply_id,
            occurred_at=event.occurred_at,
            findings=[
                f"{event.name} quantity {_fmt(event.quantity)} below threshold "
                f"{_fmt(event.threshold)}"
            ],
        )

    @staticmethod
    def _classify_bed(event: BedObservation) -> Trigger | None:
        if event.status != BedStatus.CLEANING or event.cleaning_cycles < BED_CLEANING_CYCLES:
            return None
        return Trigger(
            source_kind=event.source_kind,
            severity=Severity.LOW,
            location=event.ward,
            subject_id=event.bed_id,
            occurred_at=event.occurred_at,
            findings=[
                f"bed {event.bed_id} in Cleaning for {event.cleaning_cycles} "
                "consecutive observations"
            ],
        )
