import pytest

TOKEN_URL = "/api/v1/auth/token/"
REFRESH_URL = "/api/v1/auth/token/refresh/"
ME_URL = "/api/v1/auth/me/"


@pytest.mark.django_db
def test_login_returns_tokens_and_profile(api_client, district_manager_user):
    response = api_client.post(
        TOKEN_URL, {"email": district_manager_user.email, "password": "testpass123"}, format="json",
    )

    assert response.status_code == 200
    assert response.data["access"]
    assert response.data["refresh"]
    assert response.data["user"]["role"] == "DISTRICT_MANAGER"
    assert response.data["user"]["full_name"] == "Dora District"


@pytest.mark.django_db
def test_login_wrong_password(api_client, district_manager_user):
    response = api_client.post(TOKEN_URL, {"email": district_manager_user.email, "password": "nope"}, format="json")
    assert response.status_code == 401


@pytest.mark.django_db
def test_bearer_token_authenticates(api_client, branch_manager_user):
    login = api_client.post(TOKEN_URL, {"email": branch_manager_user.email, "password": "testpass123"}, format="json")
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['access']}")

    response = api_client.get(ME_URL)

    assert response.status_code == 200
    assert response.data["email"] == branch_manager_user.email


@pytest.mark.django_db
def test_refresh(api_client, admin_user):
    login = api_client.post(TOKEN_URL, {"email": admin_user.email, "password": "testpass123"}, format="json")
    response = api_client.post(REFRESH_URL, {"refresh": login.data["refresh"]}, format="json")

    assert response.status_code == 200
    assert response.data["access"]


@pytest.mark.django_db
def test_me_exposes_officer_record(officer_client, officer):
    response = officer_client.get(ME_URL)

    assert response.status_code == 200
    assert response.data["officer"] == str(officer.pk)


@pytest.mark.django_db
def test_me_requires_authentication(api_client):
    assert api_client.get(ME_URL).status_code == 401
