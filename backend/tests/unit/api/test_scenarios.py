"""
End-to-end flows across several endpoints
"""
import pytest
from httpx import AsyncClient

from conftest import TEST_PASSWORD


async def login(client: AsyncClient, username: str, password: str = TEST_PASSWORD) -> dict:
    response = await client.post('/api/auth/login', json={'username': username, 'password': password})
    assert response.status_code == 200, response.text
    return {'Authorization': f"Bearer {response.json()['token']}"}


class TestPermissionChanges:
    """Permissions ride in the token until the holder logs in again"""

    @pytest.mark.asyncio
    async def test_grant_applies_after_relogin(self, client: AsyncClient, supervisor_user, assistant_user):
        supervisor = await login(client, supervisor_user.username)
        assistant_id = assistant_user.id
        assistant_name = assistant_user.username
        old_token = await login(client, assistant_name)

        denied = await client.post('/api/students', headers=old_token, json={
            'name': 'First Try', 'email': 'first@example.com'
        })
        assert denied.status_code == 403

        granted = await client.put(
            f'/api/users/{assistant_id}/permissions', headers=supervisor, json={'can_edit_student': True}
        )
        assert granted.status_code == 200

        # Stored flags changed, the old token did not
        me = await client.get('/api/auth/me', headers=old_token)
        assert me.json()['user']['can_edit_student'] is True
        still_denied = await client.post('/api/students', headers=old_token, json={
            'name': 'Second Try', 'email': 'second@example.com'
        })
        assert still_denied.status_code == 403

        new_token = await login(client, assistant_name)
        allowed = await client.post('/api/students', headers=new_token, json={
            'name': 'Third Try', 'email': 'third@example.com'
        })
        assert allowed.status_code == 201

    @pytest.mark.asyncio
    async def test_revoke_applies_after_relogin(self, client: AsyncClient, supervisor_user, make_assistant):
        editor = await make_assistant(can_edit_student=True)
        editor_id = editor.id
        editor_name = editor.username
        supervisor = await login(client, supervisor_user.username)
        old_token = await login(client, editor_name)

        await client.put(f'/api/users/{editor_id}/permissions', headers=supervisor, json={'can_edit_student': False})

        before = await client.post('/api/students', headers=old_token, json={
            'name': 'Still Allowed', 'email': 'allowed@example.com'
        })
        assert before.status_code == 201

        new_token = await login(client, editor_name)
        after = await client.post('/api/students', headers=new_token, json={
            'name': 'Now Denied', 'email': 'denied@example.com'
        })
        assert after.status_code == 403


class TestStudentBrowsing:

    @pytest.mark.asyncio
    async def test_search_and_paginate(self, client: AsyncClient, supervisor_headers, make_student):
        for i in range(12):
            await make_student(name=f'Physics Student {i:02d}', department='Physics')
        for i in range(3):
            await make_student(name=f'Maths Student {i:02d}', department='Mathematics')

        first = await client.get(
            '/api/students?search=physics&sort_by=name&order=asc&limit=5', headers=supervisor_headers
        )
        last = await client.get(
            '/api/students?search=physics&sort_by=name&order=asc&limit=5&page=3', headers=supervisor_headers
        )

        assert first.json()['pagination'] == {'total': 12, 'page': 1, 'limit': 5, 'totalPages': 3}
        assert [s['name'] for s in first.json()['students']][0] == 'Physics Student 00'
        assert [s['name'] for s in last.json()['students']] == ['Physics Student 10', 'Physics Student 11']

    @pytest.mark.asyncio
    async def test_unknown_sort_key_ignored(self, client: AsyncClient, supervisor_headers, make_student):
        await make_student()

        response = await client.get('/api/students?sort_by=hashed_password', headers=supervisor_headers)

        assert response.status_code == 200
        assert len(response.json()['students']) == 1


class TestActivityFeed:

    @pytest.mark.asyncio
    async def test_feed_follows_operations(self, client: AsyncClient, supervisor_user, supervisor_headers):
        created = await client.post('/api/students', headers=supervisor_headers, json={
            'name': 'Ana Lopez', 'email': 'ana@example.com'
        })
        student_id = created.json()['student']['id']
        await client.put(f'/api/students/{student_id}', headers=supervisor_headers, json={'gpa': 3.8})
        await client.post('/api/tasks', headers=supervisor_headers, json={
            'student_id': student_id, 'title': 'Essay'
        })

        feed = await client.get('/api/dashboard/activities', headers=supervisor_headers)

        data = feed.json()
        assert data['total'] == 3
        assert [a['action'] for a in data['activities']] == [
            'Assigned task "Essay" to Ana Lopez',
            'Updated student: Ana Lopez',
            'Created new student: Ana Lopez',
        ]
        assert all(a['username'] == supervisor_user.username for a in data['activities'])
        assert all(a['role'] == 'supervisor' for a in data['activities'])

        per_student = await client.get(f'/api/dashboard/activities/student/{student_id}', headers=supervisor_headers)
        assert [a['action'] for a in per_student.json()['activities']] == [
            'Updated student: Ana Lopez',
            'Created new student: Ana Lopez',
        ]

    @pytest.mark.asyncio
    async def test_feed_paging(self, client: AsyncClient, supervisor_headers, make_student):
        for i in range(4):
            student = await make_student()
            await client.put(f'/api/students/{student.id}', headers=supervisor_headers, json={'department': f'D{i}'})

        response = await client.get('/api/dashboard/activities?limit=2&offset=1', headers=supervisor_headers)

        data = response.json()
        assert data['total'] == 4
        assert data['limit'] == 2
        assert data['offset'] == 1
        assert len(data['activities']) == 2
