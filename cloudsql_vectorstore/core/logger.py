# -*- coding: utf-8 -*-
"""
커넥터 전반에서 사용될 로거(Logger)를 설정하고 관리하는 모듈입니다.

이 모듈의 핵심 기능:
1.  **중앙화된 로거 설정**: `get_logger` 함수를 통해 일관된 포맷과 레벨을 가진 로거를 생성합니다.
2.  **설정 파일 연동**: `config.py`에 정의된 `log_level`과 `log_format` 값을 읽어와 로거에 적용합니다.
3.  **핸들러 중복 방지**: 로거에 핸들러가 이미 설정되어 있는지 확인하여, 동일한 로그가 여러 번 출력되는 것을 방지합니다.
"""

import logging
import sys

from .config import get_settings


def get_logger(name: str) -> logging.Logger:
    """
    설정된 포맷과 레벨을 가진 로거 인스턴스를 생성하거나 기존 인스턴스를 반환합니다.

    Args:
        name (str): 로거의 이름. 일반적으로 호출하는 모듈의 `__name__`을 전달합니다.

    Returns:
        logging.Logger: 설정이 완료된 로거 객체.
    """
    logger = logging.getLogger(name)

    # 동일한 로거에 스트림 핸들러가 여러 번 추가되어 같은 로그가 중복 출력되는 것을 막습니다.
    if not logger.handlers:
        # 설정은 모듈 임포트 시점이 아니라 첫 로거 생성 시점에 로드합니다.
        settings = get_settings()
        log_level_str = settings.app.log_level.upper()
        log_level = getattr(logging, log_level_str, logging.INFO)
        logger.setLevel(log_level)

        formatter = logging.Formatter(settings.app.log_format)

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        logger.debug(
            f"'{name}' 로거가 '{log_level_str}' 레벨로 초기화되었습니다."
        )

    return logger
