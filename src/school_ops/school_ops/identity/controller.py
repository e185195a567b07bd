from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.web import current_principal, end_session, json_body, lifetime_seconds, login_required, start_session
from ..container import Container
from .model import ChildLink, User


def user_to_dict(user: User) -> dict:
    data = {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "name": user.display_name,
        "email": user.email,
        "role": user.role.value,
        "photoURL": user.photo_url,
    }
    if user.grade or user.section:
        data.update({"grade": user.grade, "section": user.section})
    if user.children:
        data["children"] = [child_to_dict(c) for c in user.children]
    return data


def child_to_dict(child: ChildLink) -> dict:
    return {"id": child.id, "name": child.name, "grade": child.grade, "section": child.section}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        principal = container.session_resolver.authenticate(data.get("email", ""), data.get("password", ""))
        policy = container.session_resolver.session_policy(principal.role)
        start_session(principal, policy)
        return jsonify(
            {
                "principal": principal.to_dict(),
                "persistent": policy.persistent,
                "expiresIn": lifetime_seconds(policy.lifetime),
            }
        )

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        end_session()
        return jsonify({"ok": True})

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return jsonify({"principal": g.principal.to_dict()})

    @app.route("/api/register", methods=["POST"], endpoint="register_parent")
    def register_parent():
        if current_principal() is not None:
            end_session()
        data = json_body()
        user = container.user_service.register_parent(
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
        )
        return jsonify({"user": user_to_dict(user)}), 201

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @login_required
    def list_users():
        users = container.user_service.list_users(g.principal, role=request.args.get("role") or None)
        return jsonify({"users": [user_to_dict(u) for u in users]})

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @login_required
    def create_user():
        data = json_body()
        user = container.user_service.create_account(
            g.principal,
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            email=data.get("email", ""),
            role=data.get("role", ""),
            password=data.get("password"),
            grade=data.get("grade"),
            section=data.get("section"),
            paternal_surname=data.get("apellidoPaterno") or data.get("paternalSurname"),
            maternal_surname=data.get("apellidoMaterno") or data.get("maternalSurname"),
            photo_url=data.get("photoURL"),
        )
        return jsonify({"user": user_to_dict(user)}), 201

    @app.route("/api/users/<user_id>", methods=["DELETE"], endpoint="delete_user")
    @login_required
    def delete_user(user_id: str):
        container.user_service.delete_user(g.principal, user_id)
        return jsonify({"ok": True})

    @app.route("/api/children", methods=["GET"], endpoint="list_children")
    @login_required
    def list_children():
        children = container.user_service.children_of(g.principal)
        return jsonify({"children": [child_to_dict(c) for c in children]})

    @app.route("/api/children", methods=["POST"], endpoint="link_child")
    @login_required
    def link_child():
        data = json_body()
        link = container.user_service.link_child(
            g.principal,
            paternal_surname=data.get("apellidoPaterno") or data.get("paternalSurname", ""),
            maternal_surname=data.get("apellidoMaterno") or data.get("maternalSurname", ""),
            grade=data.get("grade", ""),
            section=data.get("section", ""),
        )
        return jsonify({"child": child_to_dict(link)}), 201

    @app.route("/api/children/<child_id>", methods=["DELETE"], endpoint="unlink_child")
    @login_required
    def unlink_child(child_id: str):
        container.user_service.unlink_child(g.principal, child_id)
        return jsonify({"ok": True})
