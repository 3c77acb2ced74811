from __future__ import annotations

import os

# Required relay settings must exist before `photo_relay.main` is imported.
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("TELEGRAM_CHAT_ID", "42")
