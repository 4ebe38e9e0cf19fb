import datetime
import logging
import jwt
from flask import request, current_app
from flask_restx import Namespace, fields, Resource
from sqlalchemy.exc import SQLAlchemyError
from .models import User, StaffProfile, DEFAULT_STAFF_ROLE
from . import db, bcrypt, limiter
from .utils import require_text, blank_to_none, isoformat, write_failed
from functools import wraps

logger = logging.getLogger(__name__)

auth_ns = Namespace("auth", description="Authentication and registration")

MIN_PASSWORD_LENGTH = 6

register_model = auth_ns.model("Register", {
    "email": fields.String(required=True, description="Valid e-mail address"),
    "password": fields.String(required=True, description="Password, at least 6 characters"),
    "full_name": fields.String(required=True, description="Staff member's full name"),
    "phone": fields.String(description="Phone number (optional)"),
})

login_model = auth_ns.model("Login", {
    "email": fields.String(required=True, description="Registered e-mail"),
    "password": fields.String(required=True, description="Password"),
})


def serialize_user(user):
    profile = user.profile
    return {
        "id": user.id,
        "email": user.email,
        "full_name": profile.full_name if profile else None,
        "role": profile.role if profile else None,
        "phone": profile.phone if profile else None,
        "created_at": isoformat(user.created_at),
    }


def issue_token(user):
    return jwt.encode({
        "id": user.id,
        "exp": datetime.datetime.now(datetime.timezone.utc) + current_app.config["JWT_ACCESS_TOKEN_EXPIRES"],
    }, current_app.config["SECRET_KEY"], algorithm="HS256")


def token_required(f):
    """Decorator for protected resource methods.

    Resolves the ``x-access-token`` JWT to a User and passes it right after
    ``self``.
    """
    @wraps(f)
    def wrapper(self, *args, **kwargs):
        token = request.headers.get("x-access-token")
        if not token:
            return {"message": "Token is missing!"}, 401
        try:
            data = jwt.decode(token, current_app.config["SECRET_KEY"], algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            return {"message": "Invalid token!", "error": str(e)}, 401
        user_id = data.get("id")
        current_user = db.session.get(User, user_id) if user_id else None
        if not current_user:
            return {"message": "Invalid token!"}, 401
        return f(self, current_user, *args, **kwargs)
    return wrapper


@auth_ns.route("/register")
class Register(Resource):
    @auth_ns.expect(register_model, validate=True)
    def post(self):
        data = request.get_json()
        require_text(data, "email", "password", "full_name")
        email = data["email"].strip().lower()
        if len(data["password"]) < MIN_PASSWORD_LENGTH:
            return {"message": f"Password must have at least {MIN_PASSWORD_LENGTH} characters."}, 400
        if User.query.filter_by(email=email).first():
            return {"message": "E-mail already registered!"}, 400

        hashed_pw = bcrypt.generate_password_hash(data["password"]).decode("utf-8")
        new_user = User(email=email, password=hashed_pw)
        new_user.profile = StaffProfile(
            full_name=data["full_name"].strip(),
            role=DEFAULT_STAFF_ROLE,
            phone=blank_to_none(data.get("phone")),
        )
        try:
            db.session.add(new_user)
            db.session.commit()
        except SQLAlchemyError as e:
            return write_failed("Error registering user.", e)
        logger.info("Registered user %s", new_user.id)
        return {"message": "User registered successfully!", "id": new_user.id}, 201


@auth_ns.route("/login")
class Login(Resource):
    @limiter.limit(lambda: current_app.config["LOGIN_RATE_LIMIT"])
    @auth_ns.expect(login_model, validate=True)
    def post(self):
        data = request.get_json()
        user = User.query.filter_by(email=data["email"].strip().lower()).first()
        if not user or not bcrypt.check_password_hash(user.password, data["password"]):
            logger.info("Failed login for %s", data["email"])
            return {"message": "Invalid e-mail or password!"}, 401

        return {"token": issue_token(user), "user": serialize_user(user)}, 200


@auth_ns.route("/me")
class CurrentUser(Resource):
    @token_required
    def get(self, current_user):
        """The signed-in user with their staff profile."""
        return serialize_user(current_user), 200
