from roundtimer.extensions import socketio, logger
from flask_socketio import emit, join_room, leave_room
from roundtimer.services.event_timer_service import EventTimerService
from flask_jwt_extended import decode_token
from flask import request
import json


def event_room(event_id) -> str:
    return f"event_{event_id}"


def broadcast_timer_update(event_id, snapshot: dict):
    """Push a timer snapshot to every socket observing the event"""
    room = event_room(event_id)
    logger.info(f"Emitting timer_update to room {room}: {snapshot.get('status')}")
    socketio.emit('timer_update', snapshot, to=room)


def _extract_token(auth):
    """Find the bearer token in the auth payload, query string or headers."""
    if isinstance(auth, dict) and auth.get('token'):
        return auth['token']

    raw = request.args.get('auth') if request.args else None
    if raw:
        try:
            parsed = json.loads(raw)
            if isinstance(parsed, dict) and parsed.get('token'):
                return parsed['token']
        except (json.JSONDecodeError, TypeError):
            pass
        return raw

    if request.args and request.args.get('token'):
        return request.args.get('token')

    auth_header = request.headers.get('Authorization') if request.headers else None
    if auth_header and auth_header.startswith('Bearer '):
        return auth_header.split(' ', 1)[1]
    return None


@socketio.on('connect')
def handle_connect(auth=None):
    """Accept only sockets that present a valid JWT."""
    token = _extract_token(auth)
    if not token:
        logger.error("Socket connection rejected: No token found in any location")
        return False

    try:
        decode_token(token)
    except Exception as e:
        logger.error(f"Socket connection rejected: Invalid token: {str(e)}")
        return False

    logger.info(f"Socket connection accepted for {request.sid}: Valid JWT token")
    return True


@socketio.on('join')
def handle_join(data):
    """Handle client joining an event room"""
    logger.info("Socket 'join' event received with data: %s", data)
    if not isinstance(data, dict) or 'event_id' not in data:
        logger.error("Socket 'join' event rejected: Missing event_id")
        emit('error', {'message': 'event_id is required'})
        return

    event_id = data['event_id']
    room = event_room(event_id)
    join_room(room)
    logger.info(f"Client joined room: {room}")

    # Send the current snapshot to the joining socket only
    emit('timer_update', EventTimerService.get_timer_status(event_id))


@socketio.on('leave')
def handle_leave(data):
    """Handle client leaving an event room"""
    logger.info("Socket 'leave' event received with data: %s", data)
    if not isinstance(data, dict) or 'event_id' not in data:
        logger.error("Socket 'leave' event ignored: Missing event_id")
        return

    room = event_room(data['event_id'])
    leave_room(room)
    logger.info(f"Client left room: {room}")
