import os

class Settings:
    PROJECT_NAME: str = "VideoLens"
    DATABASE_URL: str = os.getenv("DATABASE_URL", "postgresql://postgres:postgres@db:5432/videolens")
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # work queue
    QUEUE_NAME: str = os.getenv("QUEUE_NAME", "video-analysis")
    MAX_QUEUED_JOBS: int = int(os.getenv("MAX_QUEUED_JOBS", "100"))  # 0 disables the bound
    JOB_TIMEOUT: int = int(os.getenv("JOB_TIMEOUT", "1800"))  # seconds, whole-job ceiling
    POLL_INTERVAL_SEC: int = int(os.getenv("POLL_INTERVAL_SEC", "3"))

    # storage paths
    DATA_DIR: str = os.getenv("DATA_DIR", "/data")
    SCRATCH_DIR: str = os.getenv("SCRATCH_DIR", os.path.join(DATA_DIR, "scratch"))

    # logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", "")  # empty = stdout only
    LOG_CHANNEL: str = os.getenv("LOG_CHANNEL", "system_logs")

    # metadata provider (tikhub)
    TIKHUB_BASE_URL: str = os.getenv("TIKHUB_BASE_URL", "https://api.tikhub.io")
    TIKHUB_API_TOKEN: str = os.getenv("TIKHUB_API_TOKEN", "")
    METADATA_TIMEOUT_SEC: float = float(os.getenv("METADATA_TIMEOUT_SEC", "30"))

    # media download
    MAX_DOWNLOAD_BYTES: int = int(os.getenv("MAX_DOWNLOAD_BYTES", str(500 * 1024 * 1024)))
    MIN_MEDIA_BYTES: int = int(os.getenv("MIN_MEDIA_BYTES", "1024"))
    DOWNLOAD_TIMEOUT_SEC: float = float(os.getenv("DOWNLOAD_TIMEOUT_SEC", "120"))
    DOWNLOAD_READ_TIMEOUT_SEC: float = float(os.getenv("DOWNLOAD_READ_TIMEOUT_SEC", "30"))  # per socket read
    DOWNLOAD_ATTEMPTS: int = int(os.getenv("DOWNLOAD_ATTEMPTS", "3"))
    DOWNLOAD_BACKOFF_SEC: float = float(os.getenv("DOWNLOAD_BACKOFF_SEC", "2"))

    # ffmpeg / frames
    AUDIO_TIMEOUT_SEC: float = float(os.getenv("AUDIO_TIMEOUT_SEC", "60"))
    PROBE_TIMEOUT_SEC: float = float(os.getenv("PROBE_TIMEOUT_SEC", "30"))
    FRAME_COUNT: int = int(os.getenv("FRAME_COUNT", "6"))
    FRAME_TIMEOUT_SEC: float = float(os.getenv("FRAME_TIMEOUT_SEC", "30"))

    # ocr
    OCR_LANGUAGES: str = os.getenv("OCR_LANGUAGES", "eng+chi_sim+chi_tra")
    OCR_TIMEOUT_SEC: float = float(os.getenv("OCR_TIMEOUT_SEC", "30"))

    # llm (openai-compatible)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    LLM_TIMEOUT_SEC: float = float(os.getenv("LLM_TIMEOUT_SEC", "60"))
    SUMMARY_MAX_CHARS: int = int(os.getenv("SUMMARY_MAX_CHARS", "200"))

    # speech-to-text service
    STT_API_URL: str = os.getenv("STT_API_URL", "")
    STT_API_KEY: str = os.getenv("STT_API_KEY", "")
    STT_TIMEOUT_SEC: float = float(os.getenv("STT_TIMEOUT_SEC", "120"))
    TRANSCRIPTION_LANGUAGE: str = os.getenv("TRANSCRIPTION_LANGUAGE", "zh")

    # google drive settings (durable storage for frames and audio)
    GOOGLE_DRIVE_CREDENTIALS_PATH: str = os.getenv("GOOGLE_DRIVE_CREDENTIALS_PATH", "/app/secrets/drive-service-account.json")
    GOOGLE_DRIVE_ROOT_FOLDER_ID: str = os.getenv("GOOGLE_DRIVE_ROOT_FOLDER_ID", "")  # folder that holds video-analysis/

settings = Settings()
