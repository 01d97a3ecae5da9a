"""Service-level tests for AccountService and LedgerService."""

import pytest

from voidchat.auth.password import dummy_hash
from voidchat.db.models import PROVIDER_GOOGLE, PROVIDER_PASSWORD
from voidchat.services import account_service
from voidchat.services.account_service import (
    AccountNotFoundError,
    AccountService,
    DuplicateUsernameError,
    InvalidCredentialError,
    WrongAnswerError,
)
from voidchat.services.ledger_service import LedgerService


@pytest.mark.asyncio
async def test_create_account_stores_hashes_not_secrets(db_session):
    svc = AccountService(db_session)
    account = await svc.create_account("ann", "pw1", "Q", " Rex ")

    assert account.id is not None
    assert account.identity_provider == PROVIDER_PASSWORD
    assert not account.is_federated
    assert account.password_hash.startswith("$2")
    assert account.password_hash != "pw1"
    assert "rex" not in account.security_answer_hash.lower()


@pytest.mark.asyncio
async def test_duplicate_username_raises(db_session):
    svc = AccountService(db_session)
    await svc.create_account("ann", "pw1", "Q", "A")
    with pytest.raises(DuplicateUsernameError):
        await svc.create_account("ann", "pw2", "Q", "A")

    # The session is usable after the rollback.
    assert (await svc.get_by_username("ann")) is not None


@pytest.mark.asyncio
async def test_verify_credential(db_session):
    svc = AccountService(db_session)
    created = await svc.create_account("ann", "pw1", "Q", "A")

    assert (await svc.verify_credential("ann", "pw1")).id == created.id
    with pytest.raises(InvalidCredentialError):
        await svc.verify_credential("ann", "nope")
    with pytest.raises(InvalidCredentialError):
        await svc.verify_credential("nobody", "pw1")


@pytest.mark.asyncio
async def test_reset_credential_unknown_account(db_session):
    with pytest.raises(AccountNotFoundError):
        await AccountService(db_session).reset_credential(9999, "x")


@pytest.mark.asyncio
async def test_complete_recovery(db_session):
    svc = AccountService(db_session)
    await svc.create_account("ann", "pw1", "Pet?", "Rex")

    assert await svc.get_recovery_prompt("ann") == "Pet?"
    with pytest.raises(WrongAnswerError):
        await svc.complete_recovery("ann", "fido", "new")
    await svc.complete_recovery("ann", "  REX ", "new")

    await svc.verify_credential("ann", "new")
    with pytest.raises(InvalidCredentialError):
        await svc.verify_credential("ann", "pw1")


@pytest.mark.asyncio
async def test_recovery_unknown_user(db_session):
    svc = AccountService(db_session)
    with pytest.raises(AccountNotFoundError):
        await svc.get_recovery_prompt("ghost")
    with pytest.raises(AccountNotFoundError):
        await svc.complete_recovery("ghost", "a", "b")


@pytest.mark.asyncio
async def test_ledger_rejects_unknown_role(db_session):
    account = await AccountService(db_session).create_account("ann", "pw1", "Q", "A")
    with pytest.raises(ValueError):
        await LedgerService(db_session).append(account.id, "system", "x")


@pytest.mark.asyncio
async def test_ledger_orders_and_scopes(db_session):
    accounts = AccountService(db_session)
    ann = await accounts.create_account("ann", "pw1", "Q", "A")
    bob = await accounts.create_account("bob", "pw1", "Q", "A")

    ledger = LedgerService(db_session)
    await ledger.append(ann.id, "user", "hi")
    await ledger.append(bob.id, "user", "yo")
    await ledger.append(ann.id, "assistant", "hello")

    assert [(m.role, m.content) for m in await ledger.list_for_account(ann.id)] == [
        ("user", "hi"),
        ("assistant", "hello"),
    ]
    assert [m.content for m in await ledger.list_for_account(bob.id)] == ["yo"]
    assert await ledger.list_for_account(9999) == []


@pytest.mark.asyncio
async def test_federated_provisioning_is_idempotent(db_session):
    from voidchat.services.federation_service import FederationService, OAuthProviderConfig

    provider = OAuthProviderConfig(
        client_id="c",
        client_secret="s",
        auth_url="https://oauth.test/auth",
        token_url="https://oauth.test/token",
        userinfo_url="https://oauth.test/userinfo",
        redirect_uri="http://test/auth/callback",
    )
    svc = FederationService(db_session, provider)

    first = await svc.provision_or_match("fed@example.com")
    second = await svc.provision_or_match("fed@example.com")
    assert first.id == second.id
    assert first.identity_provider == PROVIDER_GOOGLE
    assert first.password_hash is None
    assert first.is_federated


@pytest.mark.asyncio
async def test_login_against_federated_account_costs_one_bcrypt_check(
    db_session, monkeypatch
):
    """A Google account's email fails password login at the same cost as a miss."""
    from voidchat.services.federation_service import FederationService, OAuthProviderConfig

    provider = OAuthProviderConfig(
        client_id="c",
        client_secret="s",
        auth_url="https://oauth.test/auth",
        token_url="https://oauth.test/token",
        userinfo_url="https://oauth.test/userinfo",
        redirect_uri="http://test/auth/callback",
    )
    await FederationService(db_session, provider).provision_or_match("fed@example.com")

    checked = []
    real_verify = account_service.verify_password

    def recording_verify(password, password_hash):
        checked.append(password_hash)
        return real_verify(password, password_hash)

    monkeypatch.setattr(account_service, "verify_password", recording_verify)

    svc = AccountService(db_session)
    # Even the dummy hash's own plaintext must not log in.
    for password in ("anything", "voidchat-no-such-account"):
        with pytest.raises(InvalidCredentialError):
            await svc.verify_credential("fed@example.com", password)

    assert checked == [dummy_hash(), dummy_hash()]
