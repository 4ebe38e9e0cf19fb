import logging
from flask_restx import Namespace, fields, Resource, abort
from sqlalchemy.exc import SQLAlchemyError
from . import db
from .auth import token_required, serialize_user
from .utils import blank_to_none, json_payload, optional_text, write_failed

logger = logging.getLogger(__name__)

staff_ns = Namespace("staff", description="Signed-in staff member's profile")

profile_model = staff_ns.model("StaffProfile", {
    "full_name": fields.String(description="Full name"),
    "phone": fields.String(description="Phone number"),
})


@staff_ns.route("/me")
class MyProfile(Resource):
    @token_required
    def get(self, current_user):
        return serialize_user(current_user), 200

    @token_required
    @staff_ns.expect(profile_model, validate=False)
    def put(self, current_user):
        """
        Updates the profile's name and phone. The role cannot be changed here.
        """
        profile = current_user.profile
        if profile is None:
            abort(404, "Staff profile not found.")
        data = json_payload()
        if "full_name" in data:
            full_name = data["full_name"]
            if not isinstance(full_name, str) or not full_name.strip():
                abort(400, "Field 'full_name' is required.")
            profile.full_name = full_name.strip()
        if "phone" in data:
            profile.phone = blank_to_none(optional_text(data, "phone"))

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            return write_failed("Error updating profile.", e)
        logger.info("Updated staff profile %s", profile.id)
        return serialize_user(current_user), 200
