from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.web import json_body, login_required
from ..container import Container
from ..core.exceptions import ValidationError

# JSON field -> service keyword
_FIELDS = {
    "title": "title",
    "description": "description",
    "teacherId": "teacher_id",
    "schedule": "schedule",
    "maxParticipants": "max_participants",
    "enrollmentDeadline": "enrollment_deadline",
    "restrictByGradeSection": "restrict_by_grade_section",
    "allowedGrades": "allowed_grades",
    "allowedSections": "allowed_sections",
    "status": "status",
    "imageUrl": "image_url",
}

_REQUIRED_ON_CREATE = ("title", "teacherId", "schedule", "maxParticipants", "enrollmentDeadline")


def _changes(data: dict) -> dict:
    return {kw: data[key] for key, kw in _FIELDS.items() if key in data}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/workshops", methods=["GET"], endpoint="list_workshops")
    @login_required
    def list_workshops():
        workshops = container.workshop_service.visible_workshops(g.principal)
        return jsonify({"workshops": [w.to_dict() for w in workshops]})

    @app.route("/api/workshops", methods=["POST"], endpoint="create_workshop")
    @login_required
    def create_workshop():
        data = json_body()
        missing = [key for key in _REQUIRED_ON_CREATE if data.get(key) in (None, "")]
        if missing:
            raise ValidationError(f"Missing fields: {', '.join(missing)}")
        workshop = container.workshop_service.create_workshop(g.principal, **_changes(data))
        return jsonify({"workshop": workshop.to_dict()}), 201

    @app.route("/api/workshops/<workshop_id>", methods=["PUT"], endpoint="update_workshop")
    @login_required
    def update_workshop(workshop_id: str):
        workshop = container.workshop_service.update_workshop(g.principal, workshop_id, **_changes(json_body()))
        return jsonify({"workshop": workshop.to_dict()})

    @app.route("/api/workshops/<workshop_id>", methods=["DELETE"], endpoint="delete_workshop")
    @login_required
    def delete_workshop(workshop_id: str):
        container.workshop_service.delete_workshop(g.principal, workshop_id)
        return jsonify({"ok": True})

    @app.route("/api/workshops/<workshop_id>/enrollment", methods=["POST"], endpoint="enroll")
    @login_required
    def enroll(workshop_id: str):
        data = request.get_json(silent=True) or {}
        student_id = data.get("studentId") or g.principal.id
        workshop = container.enrollment_service.enroll(g.principal, workshop_id, student_id)
        return jsonify({"workshop": workshop.to_dict()})

    @app.route("/api/workshops/<workshop_id>/enrollment", methods=["DELETE"], endpoint="unenroll")
    @login_required
    def unenroll(workshop_id: str):
        data = request.get_json(silent=True) or {}
        student_id = data.get("studentId") or g.principal.id
        workshop = container.enrollment_service.unenroll(g.principal, workshop_id, student_id)
        return jsonify({"workshop": workshop.to_dict()})

    @app.route("/api/workshops/<workshop_id>/roster", methods=["GET"], endpoint="workshop_roster")
    @login_required
    def workshop_roster(workshop_id: str):
        return jsonify({"participants": container.workshop_service.roster(g.principal, workshop_id)})
