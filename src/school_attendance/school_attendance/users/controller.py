from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.http import current_user, error_response, login_required, roles_required
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = request.get_json(silent=True) or {}
        try:
            s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        except DomainError as e:
            return error_response(e)

        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["email"] = s_user.email
        session["role"] = s_user.role.value
        return jsonify({"success": True, "user": {"id": s_user.user_id, "name": s_user.name, "role": s_user.role.value}})

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/me", endpoint="me")
    @login_required
    def me():
        user = current_user()
        return jsonify({"id": user.user_id, "name": user.name, "email": user.email, "role": user.role.value})

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @roles_required(Role.ADMIN, Role.SUPERVISOR)
    def list_users():
        return jsonify([u.to_public_dict() for u in container.user_service.list_users()])

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @roles_required(Role.ADMIN)
    def create_user():
        data = request.get_json(silent=True) or {}
        try:
            try:
                role = Role(str(data.get("role") or "").lower())
            except ValueError:
                raise ValidationError("Role is not valid") from None
            user_id = container.user_service.create_account(
                name=data.get("name", ""),
                email=data.get("email", ""),
                password=data.get("password", ""),
                role=role,
                section_ids=data.get("sectionIds") or (),
                subjects=data.get("subjects") or (),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "id": user_id}), 201

    @app.route("/api/password-reset", methods=["POST"], endpoint="password_reset")
    def password_reset():
        data = request.get_json(silent=True) or {}
        try:
            container.user_service.request_password_reset(data.get("email", ""))
        except DomainError as e:
            return error_response(e)
        # Same answer for known and unknown emails.
        return jsonify({"success": True, "message": "If the account exists, a reset link has been sent"}), 202

    @app.route("/api/password-reset/confirm", methods=["POST"], endpoint="password_reset_confirm")
    def password_reset_confirm():
        data = request.get_json(silent=True) or {}
        try:
            container.user_service.reset_password(data.get("token", ""), data.get("password", ""))
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True})
