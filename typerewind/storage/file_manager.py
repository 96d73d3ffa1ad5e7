"""File management module for recorded frames and session metadata."""

import json
import logging
import random
import shutil
import string
from pathlib import Path
from datetime import datetime
from typing import List, Optional
from dataclasses import asdict

from ..models.session import SessionInfo
from .sink import FrameFileSink

logger = logging.getLogger(__name__)


class FileManager:
    """Manages file storage and organization for recordings and metadata."""

    SESSION_INFO_FILENAME = "session_info.json"

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.sessions_dir = self.data_dir / "sessions"
        self.logs_dir = self.data_dir / "logs"

        self._ensure_directories()

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.sessions_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def create_session_directory(self) -> str:
        """Create new session directory with timestamp and random suffix.

        Returns:
            Session ID (timestamp-based with random suffix)
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
        session_id = f"{timestamp}_{random_suffix}"
        session_path = self.sessions_dir / session_id
        session_path.mkdir(exist_ok=True)

        logger.info(f"Created session directory: {session_path}")
        return session_id

    def get_session_path(self, session_id: str) -> Path:
        return self.sessions_dir / session_id

    def remove_session(self, session_id: str) -> None:
        """Delete a session directory and everything in it."""
        session_path = self.get_session_path(session_id)
        if session_path.is_dir():
            shutil.rmtree(session_path)
            logger.info(f"Removed session: {session_path}")

    def create_frame_sink(self, session_id: str) -> FrameFileSink:
        """Open a frame file sink inside the session directory."""
        return FrameFileSink(str(self.get_session_path(session_id)))

    def save_session_info(self, session_info: SessionInfo) -> str:
        """Save session information to JSON file.

        Args:
            session_info: Session information to save

        Returns:
            Path to saved session info file
        """
        session_path = self.get_session_path(session_info.session_id)
        session_path.mkdir(exist_ok=True)

        info_file = session_path / self.SESSION_INFO_FILENAME

        try:
            info_dict = asdict(session_info)
            info_dict['start_time'] = session_info.start_time.isoformat()

            with open(info_file, 'w') as f:
                json.dump(info_dict, f, indent=2)

            logger.info(f"Session info saved: {info_file}")
            return str(info_file)

        except Exception as e:
            logger.error(f"Error saving session info: {e}")
            raise

    def load_session_info(self, session_id: str) -> Optional[SessionInfo]:
        """Load session information from JSON file.

        Returns:
            SessionInfo object or None if not found
        """
        info_file = self.get_session_path(session_id) / self.SESSION_INFO_FILENAME

        if not info_file.exists():
            logger.warning(f"Session info file not found: {info_file}")
            return None

        try:
            with open(info_file, 'r') as f:
                data = json.load(f)

            data['start_time'] = datetime.fromisoformat(data['start_time'])
            return SessionInfo(**data)

        except Exception as e:
            logger.error(f"Error loading session info: {e}")
            return None

    def list_sessions(self) -> List[str]:
        """List all session IDs that have saved info, oldest first."""
        try:
            sessions = []
            for path in self.sessions_dir.iterdir():
                if path.is_dir() and (path / self.SESSION_INFO_FILENAME).exists():
                    sessions.append(path.name)

            sessions.sort()
            logger.debug(f"Found {len(sessions)} sessions")
            return sessions

        except Exception as e:
            logger.error(f"Error listing sessions: {e}")
            return []
