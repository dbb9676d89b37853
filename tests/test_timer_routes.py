from flask_jwt_extended import create_access_token


def timer_url(event_id, action=None):
    base = f'/api/events/{event_id}/timer'
    return f'{base}/{action}' if action else base


def test_reading_requires_a_token(client, events):
    assert client.get(timer_url(events['live'].id)).status_code == 401


def test_any_user_can_read_the_timer(client, events, auth_headers, clock):
    res = client.get(timer_url(events['live'].id), headers=auth_headers('attendee'))
    assert res.status_code == 200
    body = res.get_json()
    assert body['has_timer'] is False
    assert body['status'] == 'inactive'
    assert body['server_time'] == '2026-10-19T18:00:00+00:00'


def test_attendees_cannot_control_the_timer(client, events, auth_headers, clock):
    res = client.post(timer_url(events['live'].id, 'start'), headers=auth_headers('attendee'))
    assert res.status_code == 403
    assert res.get_json()['error'] == 'Unauthorized to manage event timer'


def test_only_the_creating_organizer_controls_the_timer(client, events, auth_headers, clock):
    event_id = events['live'].id
    res = client.post(timer_url(event_id, 'start'), headers=auth_headers('other_organizer'))
    assert res.status_code == 403

    res = client.post(timer_url(event_id, 'start'), headers=auth_headers('organizer'))
    assert res.status_code == 200
    assert res.get_json()['status'] == 'active'


def test_unknown_event_is_404(client, events, auth_headers, clock):
    res = client.post(timer_url(4242, 'start'), headers=auth_headers())
    assert res.status_code == 404


def test_writes_for_events_that_are_not_live_are_refused(client, events, auth_headers, clock):
    res = client.post(timer_url(events['open'].id, 'start'), headers=auth_headers())
    assert res.status_code == 409
    assert res.get_json()['event_status'] == 'Registration Open'


def test_initialize_then_start(client, events, auth_headers, clock):
    event_id = events['live'].id
    res = client.post(timer_url(event_id, 'initialize'), headers=auth_headers())
    assert res.status_code == 200
    assert res.get_json()['status'] == 'inactive'
    assert res.get_json()['timer']['final_round'] == 3

    res = client.post(timer_url(event_id, 'start'), headers=auth_headers())
    assert res.get_json()['timer']['current_round'] == 1


def test_full_round_cycle_over_http(client, events, auth_headers, clock):
    event_id = events['two_rounds'].id
    admin = auth_headers()
    viewer = auth_headers('attendee')

    start = client.post(timer_url(event_id, 'start'), headers=admin).get_json()
    assert start['status'] == 'active'
    assert start['time_remaining'] == 180
    assert start['timer']['round_start_time'] == '2026-10-19T18:00:00+00:00'

    clock.advance(170)
    assert client.get(timer_url(event_id), headers=viewer).get_json()['time_remaining'] == 10

    paused = client.post(timer_url(event_id, 'pause'), json={'time_remaining': 10}, headers=admin)
    assert paused.status_code == 200
    assert paused.get_json()['timer']['pause_time_remaining'] == 10

    clock.advance(3600)
    resumed = client.post(timer_url(event_id, 'resume'), headers=admin).get_json()
    assert resumed['status'] == 'active'
    assert resumed['time_remaining'] == 10

    clock.advance(10)
    on_break = client.get(timer_url(event_id), headers=viewer).get_json()
    assert on_break['status'] == 'break_time'
    assert on_break['timer']['current_round'] == 1

    nxt = client.post(timer_url(event_id, 'next'), headers=admin).get_json()
    assert nxt['status'] == 'active'
    assert nxt['timer']['current_round'] == 2

    clock.advance(180)
    assert client.get(timer_url(event_id), headers=viewer).get_json()['status'] == 'ended'

    rejected = client.post(timer_url(event_id, 'next'), headers=admin)
    assert rejected.status_code == 409
    assert rejected.get_json()['status'] == 'ended'


def test_invalid_transition_returns_unchanged_snapshot(client, events, auth_headers, clock):
    event_id = events['live'].id
    admin = auth_headers()
    client.post(timer_url(event_id, 'start'), headers=admin)
    clock.advance(30)
    first = client.post(timer_url(event_id, 'pause'), headers=admin).get_json()

    clock.advance(5)
    second = client.post(timer_url(event_id, 'pause'), headers=admin)
    assert second.status_code == 409
    body = second.get_json()
    assert body['rejected'] is True
    assert 'paused' in body['error']
    assert body['timer'] == first['timer']


def test_end_round_moves_to_break(client, events, auth_headers, clock):
    event_id = events['live'].id
    client.post(timer_url(event_id, 'start'), headers=auth_headers())
    res = client.post(timer_url(event_id, 'end'), headers=auth_headers('organizer'))
    assert res.status_code == 200
    assert res.get_json()['status'] == 'break_time'


def test_pause_rejects_non_integer_time(client, events, auth_headers, clock):
    event_id = events['live'].id
    client.post(timer_url(event_id, 'start'), headers=auth_headers())
    res = client.post(timer_url(event_id, 'pause'), json={'time_remaining': 'soon'}, headers=auth_headers())
    assert res.status_code == 400


def test_update_duration_over_http(client, events, auth_headers, clock):
    event_id = events['live'].id
    admin = auth_headers()
    client.post(timer_url(event_id, 'start'), headers=admin)
    clock.advance(60)

    res = client.put(timer_url(event_id, 'duration'), json={'round_duration': '240'}, headers=admin)
    assert res.status_code == 200
    assert res.get_json()['time_remaining'] == 180

    assert client.put(timer_url(event_id, 'duration'), json={}, headers=admin).status_code == 400
    assert client.put(timer_url(event_id, 'duration'), json={'round_duration': 'x'}, headers=admin).status_code == 400
    assert client.put(timer_url(event_id, 'duration'), json={'round_duration': 5}, headers=admin).status_code == 400


def test_round_info(client, events, auth_headers, clock):
    event_id = events['live'].id
    client.post(timer_url(event_id, 'start'), headers=auth_headers())
    res = client.get(f'/api/events/{event_id}/round-info', headers=auth_headers('attendee'))
    assert res.status_code == 200
    assert res.get_json() == {'has_timer': True, 'status': 'active', 'current_round': 1}


def test_reads_refuse_tokens_for_removed_users(flask_app, client, events, clock):
    headers = {'Authorization': f'Bearer {create_access_token(identity="9999")}'}
    event_id = events['live'].id
    assert client.get(timer_url(event_id), headers=headers).status_code == 403
    res = client.get(f'/api/events/{event_id}/round-info', headers=headers)
    assert res.status_code == 403
    assert res.get_json()['error'] == 'User not found'
