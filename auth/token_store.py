"""
Token Store Module
OAuth2 자격 증명 한 세트를 JSON 파일로 영속화하는 저장소

- load(): 파일이 없으면 None, 손상/권한 오류는 StorageError
- save(): 임시 파일에 쓴 뒤 os.replace로 원자적 교체
- 메모리 캐싱은 하지 않음 (TokenManager 담당)
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from core.errors import StorageError
from .auth_types import Credential, CREDENTIAL_FORMAT_VERSION

logger = logging.getLogger(__name__)


class TokenStore:
    """토큰 저장소 - 단일 자격 증명 파일의 읽기/쓰기"""

    def __init__(self, path: Union[str, Path]):
        """
        저장소 초기화

        Args:
            path: 토큰 파일 경로 (~ 확장 지원)
        """
        self.path = Path(path).expanduser()

    def exists(self) -> bool:
        """토큰 파일 존재 여부"""
        return self.path.is_file()

    def load(self) -> Optional[Credential]:
        """
        저장된 자격 증명 로드

        Returns:
            Credential 또는 None (파일 없음)

        Raises:
            StorageError: 읽기 실패, JSON/스키마 오류, 알 수 없는 포맷 버전
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                record = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            raise StorageError(f"Token file {self.path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read token file {self.path}: {e}") from e

        if not isinstance(record, dict):
            raise StorageError(f"Token file {self.path} does not contain a JSON object")

        version = record.get("format_version", CREDENTIAL_FORMAT_VERSION)
        if version != CREDENTIAL_FORMAT_VERSION:
            raise StorageError(f"Unsupported token file format version: {version}")

        try:
            return Credential.model_validate(record)
        except ValidationError as e:
            raise StorageError(f"Token file {self.path} has invalid contents: {e}") from e

    def save(self, credential: Credential) -> None:
        """
        자격 증명 저장 (기존 레코드 전체 교체)

        같은 디렉토리의 임시 파일에 기록 후 os.replace로 교체하므로
        동시에 load()하는 쪽은 이전 레코드 또는 새 레코드 중 하나만 봅니다.

        Args:
            credential: 저장할 자격 증명

        Raises:
            StorageError: 쓰기 실패
        """
        payload = json.dumps(credential.to_record(), indent=2)
        tmp_path = None

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise StorageError(f"Failed to write token file {self.path}: {e}") from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.warning(f"Could not remove temporary token file {tmp_path}")

        logger.info(f"Token saved for account {credential.account_id} (expires {credential.expires_at.isoformat()})")
