from test_helpers import ALICE_EMAIL, ALICE_HANDLE

from chitchat.auth_config import UserManager
from chitchat.client.api import ChitChatClient


async def test_profile_reads_and_updates(alice_api: ChitChatClient):
    profile = await alice_api.get_profile()
    assert profile.unique_number == ALICE_HANDLE
    assert profile.display_name is None

    updated = await alice_api.update_profile(
        display_name="  Alice  ", avatar_url="https://img.test/alice.png"
    )
    assert updated.display_name == "Alice"
    assert updated.avatar_url == "https://img.test/alice.png"
    assert updated.unique_number == ALICE_HANDLE

    again = await alice_api.get_profile()
    assert again == updated


async def test_requested_verification_token_verifies_the_account(
    alice_api: ChitChatClient, monkeypatch
):
    issued = []

    async def capture_token(self, user, token, request=None):
        issued.append(token)

    monkeypatch.setattr(UserManager, "on_after_request_verify", capture_token)

    await alice_api.request_verification(ALICE_EMAIL)
    assert len(issued) == 1

    response = await alice_api.http.post("/auth/verify", json={"token": issued[0]})
    assert response.status_code == 200, response.text

    session = await alice_api.get_session()
    assert session.user.is_verified
