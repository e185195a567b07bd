from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.web import json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/announcements", methods=["GET"], endpoint="list_announcements")
    @login_required
    def list_announcements():
        items = container.notification_service.relevant_for(g.principal.role)
        return jsonify({"announcements": [a.to_dict() for a in items]})

    @app.route("/api/announcements/unread-count", methods=["GET"], endpoint="unread_count")
    @login_required
    def unread_count():
        return jsonify({"unread": container.notification_service.unread_count(g.principal.role)})

    @app.route("/api/announcements", methods=["POST"], endpoint="publish_announcement")
    @login_required
    def publish_announcement():
        data = json_body()
        announcement = container.notification_service.publish(
            g.principal,
            title=data.get("title", ""),
            message=data.get("message", ""),
            type=data.get("type", "info"),
            target_audience=data.get("targetAudience", "all"),
        )
        return jsonify({"announcement": announcement.to_dict()}), 201

    @app.route("/api/announcements/<announcement_id>/active", methods=["PUT"], endpoint="set_announcement_active")
    @login_required
    def set_announcement_active(announcement_id: str):
        data = json_body()
        announcement = container.notification_service.set_active(
            g.principal, announcement_id, bool(data.get("active", True))
        )
        return jsonify({"announcement": announcement.to_dict()})
