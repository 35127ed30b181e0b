import asyncio

from ...domain.token import Token


class MockNotifier:
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def notify(self, subject: str, token: Token) -> bool:
        # simulate async send
        await asyncio.sleep(0)
        if self.fail:
            return False
        self.sent.append({"type": token.kind.value, "to": subject, "token": token.id})
        return True
