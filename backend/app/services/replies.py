"""Reply graph: comments on coins with flat parent references"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reply import Reply
from app.services.coin_store import CoinStore
from app.services.errors import NotFoundError, ValidationError

logger = structlog.get_logger()


@dataclass
class ReplyNode:
    """A reply with its children, rebuilt at read time"""
    reply: Reply
    children: List["ReplyNode"] = field(default_factory=list)


class ReplyGraph:
    """Service for creating, liking and listing replies"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.coins = CoinStore(db)

    async def get(self, reply_id: int) -> Optional[Reply]:
        return await self.db.get(Reply, reply_id)

    async def append(
        self,
        coin_id: int,
        user_id: str,
        content: str,
        parent_id: Optional[int] = None,
        is_anonymous: bool = False,
        username: Optional[str] = None,
        user_avatar: Optional[str] = None,
    ) -> Reply:
        """Add a reply to a coin and bump the coin's reply count"""
        coin = await self.coins.get(coin_id)
        if coin is None:
            raise NotFoundError("Coin", coin_id)

        if parent_id is not None:
            parent = await self.get(parent_id)
            if parent is None:
                raise NotFoundError("Parent reply", parent_id)
            if parent.coin_id != coin_id:
                raise ValidationError(
                    "Parent reply belongs to a different coin",
                    errors=[{"loc": ["parent_id"], "msg": "coin mismatch"}],
                )

        reply = Reply(
            coin_id=coin_id,
            user_id=str(user_id),
            username=username or None,
            user_avatar=user_avatar or None,
            content=content,
            parent_id=parent_id,
            like_count=0,
            is_anonymous=is_anonymous is True,
            created_at=datetime.utcnow(),
        )
        self.db.add(reply)
        coin.reply_count = (coin.reply_count or 0) + 1
        await self.db.flush()

        logger.info("Created reply", reply_id=reply.id, coin_id=coin_id, parent_id=parent_id)
        return reply

    async def like(self, reply_id: int) -> Reply:
        """Increment the like counter. Repeated likes are not deduplicated here."""
        reply = await self.get(reply_id)
        if reply is None:
            raise NotFoundError("Reply", reply_id)
        reply.like_count = (reply.like_count or 0) + 1
        await self.db.flush()
        return reply

    async def list(self, coin_id: int) -> List[Reply]:
        """Replies on a coin, newest first"""
        result = await self.db.execute(
            select(Reply)
            .where(Reply.coin_id == coin_id)
            .order_by(Reply.created_at.desc(), Reply.id.desc())
        )
        return list(result.scalars().all())

    async def list_by_user(self, user_id: str) -> List[Reply]:
        result = await self.db.execute(
            select(Reply)
            .where(Reply.user_id == str(user_id))
            .order_by(Reply.created_at.desc(), Reply.id.desc())
        )
        return list(result.scalars().all())

    async def thread(self, coin_id: int) -> List[ReplyNode]:
        """
        Rebuild nesting from parent_id.

        Top-level nodes are newest first, children oldest first. A reply whose
        parent is missing is treated as top-level.
        """
        replies = await self.list(coin_id)
        nodes: Dict[int, ReplyNode] = {r.id: ReplyNode(reply=r) for r in replies}
        roots: List[ReplyNode] = []

        for reply in replies:
            node = nodes[reply.id]
            parent = nodes.get(reply.parent_id) if reply.parent_id is not None else None
            if parent is None or parent is node:
                roots.append(node)
            else:
                parent.children.append(node)

        for node in nodes.values():
            node.children.reverse()
        return roots
