"""Unit tests for the reply graph"""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.coin_store import CoinStore
from app.services.errors import NotFoundError, ValidationError
from app.services.replies import ReplyGraph


class TestReplyGraph:
    """Tests for ReplyGraph"""

    @pytest.mark.asyncio
    async def test_append_bumps_reply_count(self, db_session: AsyncSession):
        coin = await CoinStore(db_session).create(name="Alpha", symbol="ALP")
        graph = ReplyGraph(db_session)

        reply = await graph.append(coin.id, "1", "gm")
        await graph.append(coin.id, "2", "wagmi", parent_id=reply.id)

        assert coin.reply_count == 2
        assert reply.like_count == 0
        assert reply.is_anonymous is False

    @pytest.mark.asyncio
    async def test_parent_must_exist_on_same_coin(self, db_session: AsyncSession):
        store = CoinStore(db_session)
        alpha = await store.create(name="Alpha", symbol="ALP")
        beta = await store.create(name="Beta", symbol="BET")
        graph = ReplyGraph(db_session)
        parent = await graph.append(alpha.id, "1", "first")

        with pytest.raises(NotFoundError):
            await graph.append(alpha.id, "1", "orphan", parent_id=999)
        with pytest.raises(ValidationError):
            await graph.append(beta.id, "1", "wrong coin", parent_id=parent.id)
        with pytest.raises(NotFoundError):
            await graph.append(999, "1", "no coin")
        assert beta.reply_count == 0

    @pytest.mark.asyncio
    async def test_like_is_unconditional(self, db_session: AsyncSession):
        coin = await CoinStore(db_session).create(name="Alpha", symbol="ALP")
        graph = ReplyGraph(db_session)
        reply = await graph.append(coin.id, "1", "gm")

        await graph.like(reply.id)
        await graph.like(reply.id)

        assert reply.like_count == 2
        with pytest.raises(NotFoundError):
            await graph.like(999)

    @pytest.mark.asyncio
    async def test_thread_rebuilds_nesting(self, db_session: AsyncSession):
        coin = await CoinStore(db_session).create(name="Alpha", symbol="ALP")
        graph = ReplyGraph(db_session)
        root_a = await graph.append(coin.id, "1", "a")
        child_1 = await graph.append(coin.id, "2", "a.1", parent_id=root_a.id)
        root_b = await graph.append(coin.id, "3", "b")
        child_2 = await graph.append(coin.id, "4", "a.2", parent_id=root_a.id)
        grandchild = await graph.append(coin.id, "5", "a.1.1", parent_id=child_1.id)

        roots = await graph.thread(coin.id)

        assert [n.reply.id for n in roots] == [root_b.id, root_a.id]
        a = roots[1]
        assert [n.reply.id for n in a.children] == [child_1.id, child_2.id]
        assert [n.reply.id for n in a.children[0].children] == [grandchild.id]

    @pytest.mark.asyncio
    async def test_list_by_user(self, db_session: AsyncSession):
        coin = await CoinStore(db_session).create(name="Alpha", symbol="ALP")
        graph = ReplyGraph(db_session)
        await graph.append(coin.id, "1", "mine")
        await graph.append(coin.id, "2", "theirs")

        assert [r.content for r in await graph.list_by_user("1")] == ["mine"]
