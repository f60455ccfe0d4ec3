"""Unit tests for the user directory and password hashing"""
import pytest
from datetime import datetime, timedelta
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.errors import ValidationError
from app.services.security import hash_password, verify_password, mock_wallet_address
from app.services.users import UserDirectory


class TestSecurity:
    """Tests for password hashing helpers"""

    def test_hash_round_trip(self):
        stored = hash_password("hunter2")
        hashed, salt = stored.split(".")
        assert len(hashed) == 128
        assert len(salt) == 32
        assert verify_password("hunter2", stored)
        assert not verify_password("hunter3", stored)

    def test_malformed_hash(self):
        assert not verify_password("x", "not-a-hash")

    def test_mock_wallet_address(self):
        address = mock_wallet_address()
        assert address.startswith("0x")
        assert len(address) == 42


class TestUserDirectory:
    """Tests for UserDirectory"""

    @pytest.mark.asyncio
    async def test_create_and_authenticate(self, db_session: AsyncSession):
        users = UserDirectory(db_session)
        user = await users.create("alice", "alice@example.com", "pw")

        assert user.password != "pw"
        assert user.metal_address.startswith("0x")
        assert user.friend_ids == []
        assert (await users.authenticate("alice", "pw")).id == user.id
        assert await users.authenticate("alice", "wrong") is None
        assert await users.authenticate("bob", "pw") is None

    @pytest.mark.asyncio
    async def test_duplicates_rejected(self, db_session: AsyncSession):
        users = UserDirectory(db_session)
        await users.create("alice", "alice@example.com", "pw")
        with pytest.raises(ValidationError):
            await users.create("alice", "other@example.com", "pw")
        with pytest.raises(ValidationError):
            await users.create("alice2", "alice@example.com", "pw")

    @pytest.mark.asyncio
    async def test_update_rehashes_password(self, db_session: AsyncSession):
        users = UserDirectory(db_session)
        user = await users.create("alice", "alice@example.com", "pw")

        await users.update(user.id, password="new-pw", bio="hi")
        assert user.bio == "hi"
        assert await users.authenticate("alice", "new-pw") is not None

        await users.update(user.id, password="")
        assert await users.authenticate("alice", "new-pw") is not None

        with pytest.raises(ValueError):
            await users.update(user.id, id=5)

    @pytest.mark.asyncio
    async def test_friend_and_like_sets(self, db_session: AsyncSession):
        users = UserDirectory(db_session)
        alice = await users.create("alice", "alice@example.com", "pw")
        bob = await users.create("bob", "bob@example.com", "pw")

        await users.add_friend(alice.id, bob.id)
        await users.add_friend(alice.id, bob.id)
        assert alice.friend_ids == [str(bob.id)]
        assert [u.username for u in await users.list_friends(alice.id)] == ["bob"]

        await users.remove_friend(alice.id, bob.id)
        assert alice.friend_ids == []

        await users.add_liked_coin(alice.id, 3)
        await users.add_liked_reply(alice.id, 4)
        await users.add_liked_reply(alice.id, 4)
        assert alice.liked_coin_ids == ["3"]
        assert alice.liked_reply_ids == ["4"]
        await users.remove_liked_coin(alice.id, 3)
        await users.remove_liked_reply(alice.id, 4)
        assert alice.liked_coin_ids == []
        assert alice.liked_reply_ids == []

    @pytest.mark.asyncio
    async def test_phone_verification_flow(self, db_session: AsyncSession):
        users = UserDirectory(db_session)
        user = await users.create("alice", "alice@example.com", "pw")

        await users.set_phone_number(user.id, "+15550001")
        code = await users.generate_phone_verification_code(user.id)
        assert len(code) == 6 and code.isdigit()

        assert await users.verify_phone_number(user.id, "000000" if code != "000000" else "111111") is False
        assert await users.verify_phone_number(user.id, code) is True
        assert user.phone_verified is True
        assert user.phone_verification_code is None
        assert (await users.get_by_phone_number("+15550001")).id == user.id

    @pytest.mark.asyncio
    async def test_expired_code_rejected(self, db_session: AsyncSession):
        users = UserDirectory(db_session)
        user = await users.create("alice", "alice@example.com", "pw")
        await users.set_phone_number(user.id, "+15550001")
        code = await users.generate_phone_verification_code(user.id)
        user.phone_verification_expiry = datetime.utcnow() - timedelta(minutes=1)

        assert await users.verify_phone_number(user.id, code) is False
        assert user.phone_verified is False

    @pytest.mark.asyncio
    async def test_code_requires_phone_number(self, db_session: AsyncSession):
        users = UserDirectory(db_session)
        user = await users.create("alice", "alice@example.com", "pw")
        with pytest.raises(ValidationError):
            await users.generate_phone_verification_code(user.id)

    @pytest.mark.asyncio
    async def test_claiming_number_revokes_previous_holder(self, db_session: AsyncSession):
        users = UserDirectory(db_session)
        alice = await users.create("alice", "alice@example.com", "pw")
        bob = await users.create("bob", "bob@example.com", "pw")
        await users.set_phone_number(alice.id, "+15550001")
        await users.verify_phone_number(alice.id, await users.generate_phone_verification_code(alice.id))

        await users.set_phone_number(bob.id, "+15550001")

        assert alice.phone_verified is False
        assert bob.phone_verified is False
        assert await users.get_by_phone_number("+15550001") is None
