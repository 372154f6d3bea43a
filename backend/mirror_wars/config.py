from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

PATTERN_TIMEOUT_POLICIES = ("wait", "force-submit")


class Settings:
    def __init__(self) -> None:
        self.ws_host = os.getenv("WS_HOST", "0.0.0.0").strip() or "0.0.0.0"
        self.ws_port = int(os.getenv("WS_PORT", "3000"))
        self.reload = os.getenv("RELOAD", "").strip().lower() in {"1", "true", "yes"}
        self.log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
        self.allowed_origins = [
            origin.strip()
            for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",")
            if origin.strip()
        ] or ["*"]
        self.min_players = max(1, int(os.getenv("MIN_PLAYERS", "3")))
        self.max_players = max(self.min_players, int(os.getenv("MAX_PLAYERS", "8")))
        # Canonical server ratio; 3 players therefore yields zero mirrors.
        self.mirror_ratio = min(
            1.0,
            max(0.0, float(os.getenv("MIRROR_RATIO", "0.3"))),
        )
        self.role_reveal_ms = max(0, int(os.getenv("ROLE_REVEAL_MS", "5000")))
        self.results_delay_ms = max(0, int(os.getenv("RESULTS_DELAY_MS", "5000")))
        self.pattern_phase_ms = max(0, int(os.getenv("PATTERN_PHASE_MS", "60000")))
        self.voting_phase_ms = max(0, int(os.getenv("VOTING_PHASE_MS", "45000")))
        self.grid_size = max(2, int(os.getenv("GRID_SIZE", "4")))
        self.room_code_attempts = max(1, int(os.getenv("ROOM_CODE_ATTEMPTS", "64")))

        policy = os.getenv("PATTERN_TIMEOUT_POLICY", "wait").strip().lower()
        self.pattern_timeout_policy = policy if policy in PATTERN_TIMEOUT_POLICIES else "wait"

    @property
    def grid_cells(self) -> int:
        return self.grid_size * self.grid_size


settings = Settings()
