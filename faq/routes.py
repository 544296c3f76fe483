from flask import Blueprint, current_app, jsonify, render_template, request
from flask_pydantic import validate  # type: ignore
from pydantic import ValidationError

from faq.data_access import DataAccess
from faq.models import AnswerRequest, LoginRequest, QuestionForm
from faq.security import SecurityManager
from faq.tools import extract_integer

bp = Blueprint("main", __name__)


def security() -> SecurityManager:
    return current_app.extensions["faq.security"]


def data_access() -> DataAccess:
    return current_app.extensions["faq.data_access"]


def client_address() -> str:
    return request.remote_addr or "unknown_ip"


def admin_token_valid() -> bool:
    return security().check_token(request.args.get("token"))


@bp.route("/")
@bp.route("/faq")
def faq():
    records = data_access().list_validated()
    return render_template(
        "faq.html",
        captcha_client=security().captcha_client,
        ask_question=security().can_show_submission_form(client_address()),
        records=records or [],
        num_question=len(records) if records is not None else 0,
        unavailable=records is None,
    )


@bp.route("/health")
def health_check():
    return jsonify({"status": "ok"}), 200


@bp.route("/api/faq")
def api_faq():
    records = data_access().list_validated()
    if records is None:
        return {"error": "Questions are unavailable"}, 503
    return {"questions": [r.model_dump(mode="json") for r in records]}, 200


@bp.route("/question", methods=["POST"])
def ask_question():
    address = client_address()
    # The form is hidden from rate-limited visitors but the route stays reachable
    if not security().can_submit(address):
        return {"error": "You already asked a question recently, please try again later"}, 429

    if not security().verify_captcha(request.form.get("g-recaptcha-response")):
        return {"error": "Invalid captcha, please confirm you are not a robot"}, 400

    try:
        form = QuestionForm.model_validate(request.form.to_dict())
    except ValidationError:
        return {"error": "Your question must contain between 1 and 200 characters"}, 400

    num_question = extract_integer(request.form, "numQuestion")
    if not data_access().create_entry(form.question, num_question + 1):
        current_app.logger.error("Question could not be stored")
        return {"error": "Error while saving your question"}, 502

    security().register_submission(address)
    return {"message": "Thank you for your question"}, 201


@bp.route("/login", methods=["POST"])
@validate()
def login(body: LoginRequest):
    token = security().authenticate(body.login, body.password)
    if token is None:
        return {"error": "Invalid credentials"}, 401
    return {"token": token.value, "expires_at": token.expires_at.isoformat()}, 200


@bp.route("/admin/questions")
def list_questions():
    if not admin_token_valid():
        return {"error": "Unauthorized"}, 403
    records = data_access().list_all()
    if records is None:
        return {"error": "Questions are unavailable"}, 503
    return {"questions": [r.model_dump(mode="json") for r in records]}, 200


@bp.route("/admin/questions/<int:rowid>", methods=["PUT"])
@validate()
def update_question(rowid: int, body: AnswerRequest):
    if not admin_token_valid():
        return {"error": "Unauthorized"}, 403
    if not data_access().supports_moderation:
        return {"error": "Moderation is done in the spreadsheet"}, 501
    if not data_access().update_entry(rowid, body.answer, body.validated):
        return {"error": "Question not updated"}, 404
    current_app.logger.info("Question %s moderated (validated=%s)", rowid, body.validated)
    return {"message": "Question updated"}, 200


@bp.route("/admin/questions/<int:rowid>", methods=["DELETE"])
def delete_question(rowid: int):
    if not admin_token_valid():
        return {"error": "Unauthorized"}, 403
    if not data_access().supports_moderation:
        return {"error": "Moderation is done in the spreadsheet"}, 501
    if not data_access().delete_entry(rowid):
        return {"error": "Question not deleted"}, 404
    current_app.logger.info("Question %s deleted", rowid)
    return {"message": "Question deleted"}, 200
