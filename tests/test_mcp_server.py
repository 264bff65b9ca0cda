"""MCP tool tests"""

import pytest

from slack_challenge import mcp_server
from slack_challenge.service import ChallengeService
from conftest import seoul


@pytest.fixture
def service(settings, database, slack_client, monkeypatch):
    service = ChallengeService(settings, database, slack_client, now=lambda: seoul(2026, 10, 19, 9, 0))
    monkeypatch.setattr(mcp_server, "_service", service)
    return service


@pytest.mark.asyncio
async def test_tools_share_the_service(service, fake_slack):
    assert (await mcp_server.get_current_week())["started"] is False

    await service.start_week()
    posted = await mcp_server.post_summary()

    assert posted["ts"] == service.current_week()["message"]["ts"]
    assert fake_slack.methods().count("chat.update") == 1
    assert await mcp_server.delete_week() == {"deleted": True}
    assert (await mcp_server.get_current_week())["started"] is False
