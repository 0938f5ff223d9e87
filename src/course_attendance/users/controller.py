from __future__ import annotations

from flask import Flask, request, session

from ..common.http import current_role, current_user_id, json_body, json_ok, role_required
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    @app.route("/auth/register-student", methods=["POST"], endpoint="register_student")
    def register_student():
        data = json_body()
        user = container.user_service.register_student(
            email=data.get("email", ""),
            password=data.get("password", ""),
            name=data.get("name", ""),
            student_code=data.get("studentId", ""),
            intake=data.get("intake", ""),
            section=data.get("section", ""),
            department=data.get("department"),
        )
        return json_ok(201, message="Student registered successfully", user=user.to_dict())

    @app.route("/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        session_user, user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session["user_id"] = session_user.user_id
        session["role"] = session_user.role.value
        session["name"] = session_user.name
        return json_ok(message="Login successful", user=user.to_dict())

    @app.route("/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return json_ok(message="Logged out")

    @app.route("/users", methods=["GET"], endpoint="list_users")
    @role_required(Role.ADMIN)
    def list_users():
        users = container.user_service.list_users(role=request.args.get("role"))
        return json_ok(users=[u.to_dict() for u in users])

    @app.route("/users/create-teacher", methods=["POST"], endpoint="create_teacher")
    @role_required(Role.ADMIN)
    def create_teacher():
        data = json_body()
        teacher = container.user_service.create_teacher(
            current_role=current_role(),
            created_by=current_user_id(),
            email=data.get("email", ""),
            password=data.get("password", ""),
            name=data.get("name", ""),
            department=data.get("department"),
        )
        return json_ok(201, message="Teacher created successfully", user=teacher.to_dict())

    @app.route("/users/<user_id>", methods=["DELETE"], endpoint="delete_user")
    @role_required(Role.ADMIN)
    def delete_user(user_id: str):
        removed = container.user_service.delete_user(current_role=current_role(), user_id=user_id)
        return json_ok(message="User deleted successfully", enrollmentsRemoved=removed)
