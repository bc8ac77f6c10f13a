"""Integration tests for game settings and stage growth."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.config import get_settings
from pixey.db.models import Notification


async def _burn(client, player, fake_rpc, burn_tx_factory, amount):  # noqa: ANN001, ANN202
    decimals = get_settings().token_decimals
    tx = burn_tx_factory(player.keypair, amount * 10**decimals)
    fake_rpc.transactions[tx.signature] = tx.result
    return await client.post(
        "/api/burn-tokens",
        json={
            "wallet_address": player.wallet,
            "token_amount": amount,
            "transaction_signature": tx.signature,
        },
        headers=player.headers,
    )


class TestGameSettings:
    async def test_initial_settings(self, client) -> None:
        response = await client.get("/api/game-settings")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["current_stage"] == 1
        assert data["total_tokens_burned"] == 0
        assert data["board_width"] == 200
        assert data["board_height"] == 200
        assert data["board_size"] == 200
        assert data["next_stage"] == 2
        assert data["next_stage_threshold"] == 20_000


class TestStageGrowth:
    async def test_burn_below_threshold_keeps_stage(self, client, player, fake_rpc, burn_tx_factory) -> None:
        response = await _burn(client, player, fake_rpc, burn_tx_factory, 19_999)
        assert response.status_code == 200, response.text
        assert response.json()["data"]["stage_advanced"] is False

        data = (await client.get("/api/game-settings")).json()["data"]
        assert data["current_stage"] == 1
        assert data["total_tokens_burned"] == 19_999

    async def test_threshold_grows_board(
        self, client, player, fake_rpc, burn_tx_factory, db_session: AsyncSession
    ) -> None:
        response = await _burn(client, player, fake_rpc, burn_tx_factory, 20_000)
        data = response.json()["data"]
        assert data["stage_advanced"] is True
        assert data["current_stage"] == 2
        assert data["board_width"] == 500

        settings = (await client.get("/api/game-settings")).json()["data"]
        assert settings["board_width"] == 500
        assert settings["board_height"] == 500
        assert settings["next_stage"] == 3

        rows = (
            await db_session.execute(select(Notification).where(Notification.type == "stage_upgraded"))
        ).scalars().all()
        assert len(rows) == 1
        assert rows[0].recipient_wallet == "global"

    async def test_grown_board_accepts_new_coordinates(self, client, player, fake_rpc, burn_tx_factory) -> None:
        outside = {"x": 450, "y": 450, "color": "#FFFFFF"}
        response = await client.post("/api/place-pixel", json=outside, headers=player.headers)
        assert response.status_code == 400

        await _burn(client, player, fake_rpc, burn_tx_factory, 20_000)
        response = await client.post("/api/place-pixel", json=outside, headers=player.headers)
        assert response.status_code == 200
