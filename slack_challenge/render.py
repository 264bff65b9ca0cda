"""Plain-text rendering of a week's attendance summary."""

from __future__ import annotations

from .models import AttendanceStatus, WeekInfo, WeekRecord

GLYPHS = {
    AttendanceStatus.PENDING: "❌",
    AttendanceStatus.COMPLETED: "✅",
    AttendanceStatus.WEEKEND: "➖",
}


def render_header(info: WeekInfo) -> str:
    return f"{info.month}월 {info.week_of_month}주차 {info.weekday_name} 인증 기록"


def render_summary(info: WeekInfo, record: WeekRecord) -> str:
    """Return the summary message text for ``record`` as seen on ``info``'s day."""

    lines = [render_header(info)]
    for name, row in record.rows.items():
        lines.append(f"{name} : {''.join(GLYPHS[status] for status in row)}")
    return "".join(f"{line}\n" for line in lines)


__all__ = ["GLYPHS", "render_header", "render_summary"]
