from flask import Blueprint, jsonify, request, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from roundtimer.extensions import db
from roundtimer.exceptions import (
    UnauthorizedError,
    EventNotFoundError,
    EventNotLiveError,
)
from roundtimer.repositories.event_repository import EventRepository
from roundtimer.repositories.user_repository import UserRepository
from roundtimer.services.event_timer_service import EventTimerService
from roundtimer.sockets.timer_sockets import broadcast_timer_update

timer_bp = Blueprint("timer", __name__)


def _authorize_timer_control(event_id):
    """Only admins, or the organizer who created the event, control its timer."""
    current_user = UserRepository.find_by_id(get_jwt_identity())
    if not current_user:
        raise UnauthorizedError("User not found")

    event = EventRepository.get_event(event_id)
    if event is None:
        raise EventNotFoundError(event_id)

    if not current_user.can_manage_timer(event):
        raise UnauthorizedError("Unauthorized to manage event timer")
    return current_user


def _run_timer_write(event_id, action, operation):
    """Authorize, perform and broadcast one timer control action."""
    try:
        user = _authorize_timer_control(event_id)
        current_app.logger.info(
            f"User {user.id} requested timer '{action}' for event {event_id}"
        )
        result = operation()

        if result.get("rejected"):
            return jsonify(result), 409
        if "error" in result:
            return jsonify(result), 400

        broadcast_timer_update(event_id, result)
        return jsonify(result), 200

    except UnauthorizedError as e:
        return jsonify({"error": str(e)}), 403
    except EventNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except EventNotLiveError as e:
        return jsonify({"error": str(e), "event_status": e.event_status}), 409
    except Exception as e:
        current_app.logger.error(
            f"UNEXPECTED ERROR in timer '{action}' route (event {event_id}): {str(e)}",
            exc_info=True,
        )
        db.session.rollback()
        return (
            jsonify({"error": f"An internal server error occurred during timer {action}"}),
            500,
        )


@timer_bp.route("/events/<int:event_id>/timer", methods=["GET"])
@jwt_required()
def get_timer_status(event_id):
    try:
        if not UserRepository.find_by_id(get_jwt_identity()):
            return jsonify({"error": "User not found"}), 403

        return jsonify(EventTimerService.get_timer_status(event_id)), 200
    except Exception as e:
        current_app.logger.error(
            f"Error retrieving timer status for event {event_id}: {str(e)}",
            exc_info=True,
        )
        db.session.rollback()
        return jsonify({"error": "Failed to retrieve timer status"}), 500


@timer_bp.route("/events/<int:event_id>/round-info", methods=["GET"])
@jwt_required()
def get_round_info(event_id):
    """Get minimal round information for regular attendees"""
    try:
        if not UserRepository.find_by_id(get_jwt_identity()):
            return jsonify({"error": "User not found"}), 403

        return jsonify(EventTimerService.get_round_info(event_id)), 200
    except Exception as e:
        current_app.logger.error(
            f"Error retrieving round info for event {event_id}: {str(e)}",
            exc_info=True,
        )
        db.session.rollback()
        return (
            jsonify(
                {
                    "has_timer": False,
                    "status": "unknown",
                    "current_round": None,
                    "error": "Timer temporarily unavailable",
                }
            ),
            200,
        )


@timer_bp.route("/events/<int:event_id>/timer/initialize", methods=["POST"])
@jwt_required()
def initialize_timer(event_id):
    return _run_timer_write(
        event_id, "initialize", lambda: EventTimerService.initialize_timer(event_id)
    )


@timer_bp.route("/events/<int:event_id>/timer/start", methods=["POST"])
@jwt_required()
def start_round(event_id):
    return _run_timer_write(
        event_id, "start", lambda: EventTimerService.start_round(event_id)
    )


@timer_bp.route("/events/<int:event_id>/timer/pause", methods=["POST"])
@jwt_required()
def pause_round(event_id):
    data = request.get_json(silent=True) or {}
    time_remaining = data.get("time_remaining")

    if time_remaining is not None:
        try:
            time_remaining = int(time_remaining)
        except (ValueError, TypeError):
            current_app.logger.warning(
                f"Invalid time_remaining value received: {time_remaining}"
            )
            return jsonify({"error": "'time_remaining' must be an integer"}), 400

    return _run_timer_write(
        event_id,
        "pause",
        lambda: EventTimerService.pause_round(event_id, time_remaining),
    )


@timer_bp.route("/events/<int:event_id>/timer/resume", methods=["POST"])
@jwt_required()
def resume_round(event_id):
    return _run_timer_write(
        event_id, "resume", lambda: EventTimerService.resume_round(event_id)
    )


@timer_bp.route("/events/<int:event_id>/timer/end", methods=["POST"])
@jwt_required()
def end_round(event_id):
    return _run_timer_write(
        event_id, "end", lambda: EventTimerService.end_round(event_id)
    )


@timer_bp.route("/events/<int:event_id>/timer/next", methods=["POST"])
@jwt_required()
def next_round(event_id):
    return _run_timer_write(
        event_id, "next", lambda: EventTimerService.next_round(event_id)
    )


@timer_bp.route("/events/<int:event_id>/timer/duration", methods=["PUT"])
@jwt_required()
def update_round_duration(event_id):
    data = request.get_json(silent=True) or {}

    round_duration = data.get("round_duration")  # Optional
    break_duration = data.get("break_duration")  # Optional

    # Validate that at least one was provided
    if round_duration is None and break_duration is None:
        return (
            jsonify({"error": "Either round_duration or break_duration is required"}),
            400,
        )

    try:
        if round_duration is not None:
            round_duration = int(round_duration)
        if break_duration is not None:
            break_duration = int(break_duration)
    except (ValueError, TypeError):
        return jsonify({"error": "Durations must be integers"}), 400

    return _run_timer_write(
        event_id,
        "duration",
        lambda: EventTimerService.update_duration(
            event_id, round_duration, break_duration
        ),
    )
