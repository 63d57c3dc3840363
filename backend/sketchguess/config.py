import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Empty means pick by platform (see server.create_app)
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Rooms
    ROOM_CODE_LENGTH = int(os.environ.get("ROOM_CODE_LENGTH", "6"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "2"))
    MAX_PLAYERS_LIMIT = int(os.environ.get("MAX_PLAYERS_LIMIT", "12"))
    DEFAULT_MAX_PLAYERS = int(os.environ.get("DEFAULT_MAX_PLAYERS", "8"))
    MAX_NAME_LENGTH = int(os.environ.get("MAX_NAME_LENGTH", "16"))
    MAX_CHAT_LENGTH = int(os.environ.get("MAX_CHAT_LENGTH", "200"))

    # Game
    DEFAULT_MAX_ROUNDS = int(os.environ.get("DEFAULT_MAX_ROUNDS", "3"))
    MAX_ROUNDS_LIMIT = int(os.environ.get("MAX_ROUNDS_LIMIT", "20"))
    DEFAULT_DRAW_TIME_SEC = int(os.environ.get("DEFAULT_DRAW_TIME_SEC", "60"))
    MIN_DRAW_TIME_SEC = int(os.environ.get("MIN_DRAW_TIME_SEC", "10"))
    MAX_DRAW_TIME_SEC = int(os.environ.get("MAX_DRAW_TIME_SEC", "300"))
    HINT_INTERVAL_SEC = int(os.environ.get("HINT_INTERVAL_SEC", "15"))
    ROUND_END_DELAY_SEC = int(os.environ.get("ROUND_END_DELAY_SEC", "3"))
    GAME_END_COOLDOWN_SEC = int(os.environ.get("GAME_END_COOLDOWN_SEC", "10"))

    # Scoring: max(MIN_GUESS_POINTS, time_left * SCORE_MULTIPLIER)
    SCORE_MULTIPLIER = int(os.environ.get("SCORE_MULTIPLIER", "2"))
    MIN_GUESS_POINTS = int(os.environ.get("MIN_GUESS_POINTS", "10"))

    # Words
    WORD_POOLS_FILE = os.environ.get("WORD_POOLS_FILE", "")
    DEFAULT_WORD_POOL = os.environ.get("DEFAULT_WORD_POOL", "easy")
