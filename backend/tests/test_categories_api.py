# Overview: Pytest coverage for category routes.

from stockroom.services import category_service, session_service


class TestCategories:
    def test_create_and_list(self, client, headers, db_session):
        response = client.post('/api/categories', headers=headers, json={'name': 'Shoes'})
        assert response.status_code == 201
        assert response.json['status'] == 'active'

        listing = client.get('/api/categories', headers=headers).json
        assert [c['name'] for c in listing['items']] == ['Shoes']

    def test_create_requires_name(self, client, headers, db_session):
        assert client.post('/api/categories', headers=headers, json={}).status_code == 400
        assert client.post('/api/categories', headers=headers, json={'name': '   '}).status_code == 400

    def test_invalid_status(self, client, headers, db_session):
        response = client.post('/api/categories', headers=headers, json={'name': 'Hats', 'status': 'archived'})
        assert response.status_code == 400

    def test_duplicate_name_conflicts(self, client, headers, category):
        response = client.post('/api/categories', headers=headers, json={'name': 'Shirts'})
        assert response.status_code == 409

    def test_rename(self, client, headers, category):
        response = client.put(f"/api/categories/{category['id']}", headers=headers, json={'name': 'Tops'})
        assert response.status_code == 200
        assert response.json['name'] == 'Tops'

    def test_toggle_status(self, client, headers, category):
        url = f"/api/categories/{category['id']}/status"
        response = client.patch(url, headers=headers, json={'status': 'inactive'})
        assert response.status_code == 200
        assert response.json['status'] == 'inactive'

        listing = client.get('/api/categories?status=active', headers=headers).json
        assert listing['count'] == 0

        assert client.patch(url, headers=headers, json={'status': 'paused'}).status_code == 400

    def test_delete_unused(self, client, headers, category):
        response = client.delete(f"/api/categories/{category['id']}", headers=headers)
        assert response.status_code == 200
        assert client.get(f"/api/categories/{category['id']}", headers=headers).status_code == 404

    def test_delete_in_use_is_restricted(self, client, headers, category, product):
        response = client.delete(f"/api/categories/{category['id']}", headers=headers)
        assert response.status_code == 409
        assert client.get(f"/api/categories/{category['id']}", headers=headers).status_code == 200

    def test_other_owner_cannot_see(self, client, other_user, category):
        _, token = session_service.create_session(user_id=other_user.id)
        headers = {'Authorization': f'Bearer {token}'}

        assert client.get(f"/api/categories/{category['id']}", headers=headers).status_code == 404
        assert client.delete(f"/api/categories/{category['id']}", headers=headers).status_code == 404


class TestCategoryNameUniqueness:
    """uq_categories_user_name still answers 409 when the lookup is skipped."""

    def _skip_lookup(self, monkeypatch):
        monkeypatch.setattr(category_service, '_ensure_name_free', lambda *args, **kwargs: None)

    def test_create_race_conflicts(self, client, headers, category, monkeypatch):
        self._skip_lookup(monkeypatch)
        response = client.post('/api/categories', headers=headers, json={'name': 'Shirts'})
        assert response.status_code == 409

    def test_rename_race_conflicts(self, client, headers, user, category, monkeypatch):
        other = category_service.create_category(user_id=user.id, name='Trousers')
        self._skip_lookup(monkeypatch)
        response = client.put(f"/api/categories/{other['id']}", headers=headers, json={'name': 'Shirts'})
        assert response.status_code == 409
        assert client.get(f"/api/categories/{other['id']}", headers=headers).json['name'] == 'Trousers'
