"""Unit tests for user and profile wrappers."""
import pytest

from iform_client.resources import profiles, users

PROFILE_ID = 123456


class TestProfiles:

    def test_get_profiles(self, client, make_response, sent):
        """Test that the profile listing hits the profiles root."""
        client.session.request.return_value = make_response([{"id": PROFILE_ID, "name": "WDFW", "time_zone": "PST"}])
        df = profiles.get_profiles(client)
        assert df.to_dict(orient="records") == [{"id": PROFILE_ID, "name": "WDFW"}]
        assert sent()[1] == "https://demo.iformbuilder.com/exzact/api/v60/profiles"

    def test_get_all_profiles(self, client, make_response):
        client.session.request.side_effect = [
            make_response([{"id": i, "name": str(i)} for i in range(100)]),
            make_response([]),
        ]
        assert len(profiles.get_all_profiles(client)) == 100

    def test_get_profile(self, client, make_response):
        client.session.request.return_value = make_response({"id": PROFILE_ID, "name": "WDFW", "city": None})
        df = profiles.get_profile(client, PROFILE_ID)
        assert df.shape == (1, 3)


class TestUsers:

    def test_get_users(self, client, make_response, sent):
        client.session.request.return_value = make_response([{"id": 1, "username": "jdoe"}])
        df = users.get_users(client, PROFILE_ID)
        assert df["username"].tolist() == ["jdoe"]
        assert sent()[1].endswith("/profiles/123456/users")

    def test_get_user_id(self, client, make_response):
        client.session.request.return_value = make_response(
            [{"id": 1, "username": "jdoe"}, {"id": 2, "username": "asmith"}]
        )
        assert users.get_user_id(client, PROFILE_ID, "asmith") == 2

    def test_get_user_id_missing(self, client, make_response):
        client.session.request.return_value = make_response([])
        assert users.get_user_id(client, PROFILE_ID, "nobody") is None

    def test_get_user(self, client, make_response):
        client.session.request.return_value = make_response({"id": 1, "username": "jdoe", "email": "j@x.org"})
        assert users.get_user(client, PROFILE_ID, 1).loc[0, "email"] == "j@x.org"

    def test_create_user(self, client, make_response, sent):
        """Test that the user is posted as a one-item list and its id returned."""
        client.session.request.return_value = make_response([{"id": 31}])
        assert users.create_user(client, PROFILE_ID, "jdoe", "s3cret!", "j@x.org") == 31
        assert sent()[3] == [{"username": "jdoe", "password": "s3cret!", "email": "j@x.org"}]

    def test_create_user_without_id(self, client, make_response):
        client.session.request.return_value = make_response([])
        with pytest.raises(ValueError):
            users.create_user(client, PROFILE_ID, "jdoe", "s3cret!", "j@x.org")

    def test_delete_user(self, client, make_response, sent):
        client.session.request.return_value = make_response({"id": 31})
        assert users.delete_user(client, PROFILE_ID, 31) == 31
        assert sent()[0] == "DELETE"
