from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_user, error_response, login_required, roles_required
from ..common.validators import parse_flag
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .session import AttendanceSession, SessionFilters


def _student_row(session: AttendanceSession, student) -> dict:
    record = session.records.get(student.id)
    homeroom = session.homeroom_record(student)
    return {
        "id": student.id,
        "studentId": student.student_id,
        "name": student.full_name,
        "gradeLevel": student.grade_level,
        "section": student.section,
        "record": record.to_document() if record else None,
        "homeroom": homeroom.to_document() if homeroom else None,
    }


def session_payload(session: AttendanceSession, filters: Optional[SessionFilters] = None) -> dict:
    baseline = session.homeroom
    return {
        "id": session.session_id,
        "state": session.state.value,
        "sectionId": session.section_id,
        "subject": session.subject,
        "date": session.day.isoformat(),
        "isHomeroom": session.is_homeroom,
        "lastError": session.last_error,
        "homeroom": (
            {"teacherName": baseline.teacher_name, "takenAt": baseline.taken_at, "sections": baseline.sections}
            if baseline
            else None
        ),
        "stats": asdict(session.stats()),
        "students": [_student_row(session, s) for s in session.filtered_and_sorted(filters)],
    }


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/sessions", methods=["POST"], endpoint="open_session")
    @roles_required(Role.HOMEROOM, Role.SUBJECT)
    def open_session():
        data = request.get_json(silent=True) or {}
        try:
            day = parse_iso_date(data["date"]) if data.get("date") else None
        except ValueError:
            return error_response(ValidationError("date must be YYYY-MM-DD"))

        section_ids = data.get("sectionIds") or ([data["sectionId"]] if data.get("sectionId") else [])
        try:
            session = service.open_session(
                section_ids=section_ids,
                subject=data.get("subject") or "Homeroom",
                day=day,
                is_homeroom=bool(data.get("isHomeroom", False)),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify(session_payload(session)), 201

    @app.route("/api/sessions/<session_id>", methods=["GET"], endpoint="get_session")
    @login_required
    def get_session(session_id: str):
        try:
            session = service.get_session(session_id)
        except DomainError as e:
            return error_response(e)
        return jsonify(session_payload(session, SessionFilters.from_mapping(request.args)))

    @app.route("/api/sessions/<session_id>/students/<student_id>", methods=["PATCH"], endpoint="edit_record")
    @login_required
    def edit_record(session_id: str, student_id: str):
        data = request.get_json(silent=True) or {}
        try:
            record = service.get_session(session_id).apply_edit(student_id, data)
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "record": record.to_document()})

    @app.route("/api/sessions/<session_id>/bulk", methods=["POST"], endpoint="bulk_edit")
    @login_required
    def bulk_edit(session_id: str):
        data = request.get_json(silent=True) or {}
        filters = SessionFilters.from_mapping(data.get("filters"))
        try:
            session = service.get_session(session_id)
            if "status" in data:
                changed = session.bulk_set_status(data["status"], filters)
            elif "hasBehaviorIssue" in data:
                changed = session.bulk_set_behavior_flag(parse_flag(data["hasBehaviorIssue"], "hasBehaviorIssue"), filters)
            else:
                raise ValidationError("Nothing to apply: send status or hasBehaviorIssue")
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "changed": changed})

    @app.route("/api/sessions/<session_id>/validate", methods=["GET"], endpoint="validate_session")
    @login_required
    def validate_session(session_id: str):
        try:
            report = service.get_session(session_id).validate()
        except DomainError as e:
            return error_response(e)
        return jsonify(asdict(report))

    @app.route("/api/sessions/<session_id>/save", methods=["POST"], endpoint="save_session")
    @login_required
    def save_session(session_id: str):
        user = current_user()
        try:
            doc_id = service.save_session(session_id, recorded_by=user.name or user.email, teacher_id=user.user_id)
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "id": doc_id, "message": "Attendance saved"})

    @app.route("/api/sessions/<session_id>", methods=["DELETE"], endpoint="close_session")
    @login_required
    def close_session(session_id: str):
        try:
            service.close_session(session_id)
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True})
