def _create_subject(client, **payload):
    r = client.post('/api/subjects', json=payload)
    assert r.status_code == 201
    return r.json()['data']['id']


def test_default_subjects_are_seeded(client):
    r = client.get('/api/subjects')
    assert r.status_code == 200
    body = r.json()
    assert body['success'] is True
    assert body['message'] == 'Subjects retrieved'
    names = [s['name'] for s in body['data']]
    assert names == ['Flutter', 'Research Methodology', 'Linux', 'Oracle', 'Microprocessor']
    ids = [s['id'] for s in body['data']]
    assert ids == sorted(ids)
    assert body['data'][0]['color'] == '#02569B'


def test_seeding_is_idempotent(make_client):
    make_client()
    # a second app on the same database must not duplicate the seed
    client = make_client()
    data = client.get('/api/subjects').json()['data']
    assert len(data) == 5


def test_create_subject_applies_default_color(client):
    sid = _create_subject(client, name='Math', color='')
    r = client.get(f'/api/subjects/{sid}')
    assert r.status_code == 200
    s = r.json()['data']
    assert s['name'] == 'Math'
    assert s['color'] == '#3498db'
    assert s['description'] == ''
    assert s['total_topics'] == 0
    assert s['progress'] == 0


def test_create_subject_requires_name(client):
    r = client.post('/api/subjects', json={'name': '', 'color': '#000000'})
    assert r.status_code == 400
    assert r.json()['success'] is False
    r = client.post('/api/subjects', json={'description': 'no name'})
    assert r.status_code == 400


def test_update_subject_keeps_fields_for_empty_values(client):
    sid = _create_subject(client, name='Physics', description='Mechanics', color='#111111')
    r = client.put(f'/api/subjects/{sid}', json={'name': '', 'description': '', 'color': ''})
    assert r.status_code == 200
    assert r.json() == {'success': True, 'message': 'Subject updated'}
    s = client.get(f'/api/subjects/{sid}').json()['data']
    assert (s['name'], s['description'], s['color']) == ('Physics', 'Mechanics', '#111111')

    client.put(f'/api/subjects/{sid}', json={'name': 'Physics II', 'color': '#222222'})
    s = client.get(f'/api/subjects/{sid}').json()['data']
    assert (s['name'], s['description'], s['color']) == ('Physics II', 'Mechanics', '#222222')


def test_missing_subject_is_not_found(client):
    for r in (
        client.get('/api/subjects/9999'),
        client.put('/api/subjects/9999', json={'name': 'x'}),
        client.delete('/api/subjects/9999'),
    ):
        assert r.status_code == 404
        assert r.json() == {'success': False, 'message': 'Subject not found'}


def test_malformed_subject_id_is_bad_request(client):
    r = client.get('/api/subjects/abc')
    assert r.status_code == 400
    assert r.json() == {'success': False, 'message': 'Invalid subject ID'}


def test_subject_progress_counts_topics(client):
    sid = _create_subject(client, name='Chemistry')
    topic_ids = []
    for name in ('Atoms', 'Bonds', 'Acids', 'Bases'):
        r = client.post('/api/topics', json={'subject_id': sid, 'name': name})
        topic_ids.append(r.json()['data']['id'])
    client.put(f'/api/topics/{topic_ids[0]}/complete')
    client.put(f'/api/topics/{topic_ids[1]}/weak')
    s = client.get(f'/api/subjects/{sid}').json()['data']
    assert s['total_topics'] == 4
    assert s['completed_topics'] == 1
    assert s['weak_topics'] == 1
    assert s['progress'] == 25.0


def test_delete_subject_cascades(client):
    sid = _create_subject(client, name='Biology')
    tid = client.post('/api/topics', json={'subject_id': sid, 'name': 'Cells'}).json()['data']['id']
    client.post('/api/notes', json={'subject_id': sid, 'topic_id': tid, 'title': 'Mitosis'})
    client.post('/api/study-plan', json={'subject_id': sid, 'study_date': '2025-03-01'})

    r = client.delete(f'/api/subjects/{sid}')
    assert r.status_code == 200
    assert r.json()['message'] == 'Subject deleted'
    assert client.get(f'/api/subjects/{sid}').status_code == 404
    assert client.get(f'/api/subjects/{sid}/topics').json()['data'] == []
    assert client.get(f'/api/subjects/{sid}/notes').json()['data'] == []
    assert all(p['subject_id'] != sid for p in client.get('/api/study-plan').json()['data'])
    assert client.put(f'/api/topics/{tid}/complete').status_code == 404


def test_oversized_subject_id_is_bad_request(client):
    r = client.get('/api/subjects/99999999999999999999')
    assert r.status_code == 400
    assert r.json() == {'success': False, 'message': 'Invalid subject ID'}
    r = client.delete('/api/subjects/-99999999999999999999')
    assert r.status_code == 400
