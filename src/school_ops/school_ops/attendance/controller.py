from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import json_body, login_required
from ..container import Container
from ..core.enums import Role
from .model import AttendanceContext


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance", methods=["POST"], endpoint="record_attendance")
    @login_required
    def record_attendance():
        data = json_body()
        ack = container.attendance_service.record_attendance(
            g.principal,
            parse_iso_date(data.get("date", "")),
            AttendanceContext.from_mapping(data),
            data.get("records") or [],
        )
        return jsonify({"date": ack.date.isoformat(), "context": ack.context.to_dict(), "written": ack.written})

    @app.route("/api/attendance/entry", methods=["GET"], endpoint="attendance_entry")
    @login_required
    def attendance_entry():
        entry = container.attendance_service.get_entry(
            g.principal,
            parse_iso_date(request.args.get("date", "")),
            AttendanceContext.from_mapping(request.args),
        )
        if entry is None:
            return jsonify({"entry": None})
        return jsonify(
            {
                "entry": {
                    "date": entry.date.isoformat(),
                    "context": entry.context.to_dict(),
                    "records": [{"studentId": r.student_id, "status": r.status.value} for r in entry.records],
                }
            }
        )

    @app.route("/api/students/<student_id>/attendance", methods=["GET"], endpoint="student_attendance")
    @login_required
    def student_attendance(student_id: str):
        history = container.attendance_service.get_student_history(g.principal, student_id)
        stats = container.attendance_service.aggregate(g.principal, student_id)
        return jsonify({"history": [h.to_dict() for h in history], "stats": stats.to_dict()})

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="attendance_summary")
    @login_required
    def attendance_summary():
        if g.principal.role == Role.PARENT:
            summary = container.attendance_service.children_summary(g.principal)
            return jsonify(
                {
                    "children": {cid: s.to_dict() for cid, s in summary.per_child.items()},
                    "combined": summary.combined.to_dict(),
                }
            )
        return jsonify({"school": container.attendance_service.school_summary(g.principal).to_dict()})
