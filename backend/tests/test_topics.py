import threading
from concurrent.futures import ThreadPoolExecutor

from fastapi.testclient import TestClient


def _topics(client, subject_id):
    return client.get(f'/api/subjects/{subject_id}/topics').json()['data']


def test_create_topic_and_toggle_complete_scenario(client):
    r = client.post('/api/subjects', json={'name': 'Math', 'color': ''})
    sid = r.json()['data']['id']
    assert client.get(f'/api/subjects/{sid}').json()['data']['color'] == '#3498db'

    r = client.post('/api/topics', json={'subject_id': 1, 'name': 'Algebra'})
    assert r.status_code == 201
    assert r.json()['message'] == 'Topic created'
    tid = r.json()['data']['id']
    topic = _topics(client, 1)[0]
    assert topic['id'] == tid
    assert topic['is_completed'] is False
    assert topic['is_weak'] is False

    r = client.put(f'/api/topics/{tid}/complete')
    assert r.status_code == 200
    assert r.json()['message'] == 'Topic completion toggled'
    assert _topics(client, 1)[0]['is_completed'] is True
    assert client.get('/api/subjects/1').json()['data']['progress'] == 100.0


def test_toggle_twice_restores_flags(client):
    tid = client.post('/api/topics', json={'subject_id': 2, 'name': 'Sampling'}).json()['data']['id']
    for path in ('complete', 'weak'):
        client.put(f'/api/topics/{tid}/{path}')
        client.put(f'/api/topics/{tid}/{path}')
    topic = _topics(client, 2)[0]
    assert topic['is_completed'] is False
    assert topic['is_weak'] is False


def test_list_topics_ordered_by_id(client):
    for name in ('Shell', 'Permissions', 'Processes'):
        client.post('/api/topics', json={'subject_id': 3, 'name': name})
    topics = _topics(client, 3)
    assert [t['name'] for t in topics] == ['Shell', 'Permissions', 'Processes']
    assert [t['id'] for t in topics] == sorted(t['id'] for t in topics)


def test_create_topic_requires_fields(client):
    assert client.post('/api/topics', json={'name': 'Orphan'}).status_code == 400
    assert client.post('/api/topics', json={'subject_id': 1, 'name': ''}).status_code == 400


def test_create_topic_for_unknown_subject_is_store_error(client):
    r = client.post('/api/topics', json={'subject_id': 9999, 'name': 'Nowhere'})
    assert r.status_code == 500
    body = r.json()
    assert body['success'] is False
    assert 'FOREIGN KEY' in body['message']


def test_update_topic_only_touches_supplied_fields(client):
    tid = client.post('/api/topics', json={'subject_id': 4, 'name': 'Joins'}).json()['data']['id']
    client.put(f'/api/topics/{tid}/weak')

    r = client.put(f'/api/topics/{tid}', json={'is_completed': True})
    assert r.status_code == 200
    topic = _topics(client, 4)[0]
    assert (topic['name'], topic['is_completed'], topic['is_weak']) == ('Joins', True, True)

    client.put(f'/api/topics/{tid}', json={'name': 'Outer joins', 'is_weak': False})
    topic = _topics(client, 4)[0]
    assert (topic['name'], topic['is_completed'], topic['is_weak']) == ('Outer joins', True, False)


def test_update_topic_without_fields_is_rejected(client):
    tid = client.post('/api/topics', json={'subject_id': 4, 'name': 'Indexes'}).json()['data']['id']
    for payload in ({}, {'name': ''}):
        r = client.put(f'/api/topics/{tid}', json=payload)
        assert r.status_code == 400
        assert r.json() == {'success': False, 'message': 'No fields to update'}


def test_missing_topic_is_not_found(client):
    for r in (
        client.put('/api/topics/9999', json={'name': 'x'}),
        client.put('/api/topics/9999/complete'),
        client.put('/api/topics/9999/weak'),
        client.delete('/api/topics/9999'),
    ):
        assert r.status_code == 404
        assert r.json()['message'] == 'Topic not found'


def test_delete_topic_detaches_notes(client):
    tid = client.post('/api/topics', json={'subject_id': 5, 'name': 'Registers'}).json()['data']['id']
    nid = client.post('/api/notes', json={'subject_id': 5, 'topic_id': tid, 'title': 'AX, BX'}).json()['data']['id']

    r = client.delete(f'/api/topics/{tid}')
    assert r.status_code == 200
    assert _topics(client, 5) == []
    notes = client.get('/api/subjects/5/notes').json()['data']
    assert [n['id'] for n in notes] == [nid]
    assert notes[0]['topic_id'] is None


def test_concurrent_toggles_are_not_lost(client):
    tid = client.post('/api/topics', json={'subject_id': 1, 'name': 'Streams'}).json()['data']['id']
    workers = 8
    start = threading.Barrier(workers)

    def toggle(path):
        worker = TestClient(client.app)
        start.wait()
        return worker.put(f'/api/topics/{tid}/{path}').status_code

    with ThreadPoolExecutor(max_workers=workers) as pool:
        codes = list(pool.map(toggle, ['complete'] * 4 + ['weak'] * 4))
    assert codes == [200] * workers
    # an even number of flips per flag leaves both where they started
    topic = _topics(client, 1)[0]
    assert topic['is_completed'] is False
    assert topic['is_weak'] is False


def test_oversized_topic_ids_are_bad_requests(client):
    huge = 99999999999999999999
    r = client.put(f'/api/topics/{huge}/complete')
    assert r.status_code == 400
    assert r.json() == {'success': False, 'message': 'Invalid topic ID'}
    r = client.post('/api/topics', json={'subject_id': huge, 'name': 'Overflow'})
    assert r.status_code == 400
    assert r.json()['success'] is False
    assert r.json()['message'].startswith('subject_id:')
