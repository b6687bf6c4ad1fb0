"""Login and subscription endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from ..errors import InvalidInput
from ..market.instruments import in_display_order
from .directory import UserDirectory
from .sessions import SessionStore

logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    email: str | None = None


class SessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(default=None, alias="sessionId")


class SubscriptionRequest(SessionRequest):
    stock: str | None = None


def create_users_router(sessions: SessionStore, directory: UserDirectory) -> APIRouter:
    """Router for login/logout and subscription management.

    Subscription changes notify directory listeners (snapshot save and the
    SUBSCRIPTION_UPDATE push) before the response is returned.
    """
    router = APIRouter(prefix="/api", tags=["users"])

    @router.post("/login")
    async def login(body: LoginRequest) -> dict:
        email = body.email
        if not email or "@" not in email:
            raise InvalidInput("Invalid email")

        user = directory.get_or_create(email)
        session_id = sessions.create(user.id)
        logger.info("User %s logged in (%d active sessions)", user.id, len(sessions))
        return {
            "success": True,
            "sessionId": session_id,
            "userId": user.id,
            "email": user.email,
        }

    @router.post("/logout")
    async def logout(body: SessionRequest) -> dict:
        if sessions.revoke(body.session_id):
            logger.info("Session revoked")
        return {"success": True}

    @router.post("/subscribe")
    async def subscribe(body: SubscriptionRequest) -> dict:
        user_id = sessions.require(body.session_id)
        subscriptions = directory.subscribe(user_id, body.stock)
        return {"success": True, "subscriptions": in_display_order(subscriptions)}

    @router.post("/unsubscribe")
    async def unsubscribe(body: SubscriptionRequest) -> dict:
        user_id = sessions.require(body.session_id)
        subscriptions = directory.unsubscribe(user_id, body.stock)
        return {"success": True, "subscriptions": in_display_order(subscriptions)}

    @router.get("/subscriptions/{session_id}")
    async def get_subscriptions(session_id: str) -> dict:
        user_id = sessions.require(session_id)
        return {"subscriptions": in_display_order(directory.subscriptions_of(user_id))}

    return router
