"""Pre-authored Korean strings shown to visitors.

Routers and services pick from these constants; nothing here is computed.
"""


class DomainErrorMessages:
    """Default messages for the domain exception hierarchy."""

    DOMAIN_ERROR: str = "요청을 처리하지 못했습니다"
    VALIDATION_ERROR: str = "잘못된 요청입니다"
    NOT_FOUND: str = "요청한 항목을 찾을 수 없습니다"
    CONFLICT: str = "현재 화면에서는 할 수 없는 동작입니다"
    CONFIGURATION_ERROR: str = "서비스 설정이 올바르지 않습니다"


class SessionErrorMessages:
    NOT_FOUND: str = "진단 세션을 찾을 수 없습니다"
    NOT_FOUND_WITH_ID: str = "세션 {session_id} 을(를) 찾을 수 없습니다"
    INVALID_TRANSITION: str = "{state} 화면에서는 '{event}' 동작을 할 수 없습니다"
    NO_QUESTIONS: str = "준비된 문항이 없습니다. 데이터를 확인 중입니다. 잠시 후 다시 시도해주세요."
    SELECTION_MISSING: str = "먼저 {field} 을(를) 선택해주세요"
    SUBMISSION_IN_FLIGHT: str = "이전 응답을 처리하는 중입니다"


class NavigationMessages:
    AT_FIRST_QUESTION: str = "첫 번째 문항입니다"
    AT_FRONTIER: str = "아직 답하지 않은 문항으로는 이동할 수 없습니다"
    REVIEW_BUFFER_EXCEEDED: str = "최근 {depth}개 문항까지만 되돌아갈 수 있습니다"
    OPTION_OUT_OF_RANGE: str = "선택지 번호가 올바르지 않습니다"
    BACK_TO_MODE_FIRST_ONLY: str = "진단 모드 변경은 첫 번째 문항에서만 할 수 있습니다"


class ShareMessages:
    INCOMPLETE_LINK: str = "공유 링크에 결과 정보가 부족합니다"
    SHARE_TEXT: str = "나의 DISC 결과는 [{title}]! 당신의 행동 DNA도 확인해보세요."


class NarrativeMessages:
    FALLBACK: str = "지금은 맞춤 해설을 불러올 수 없습니다. 위의 분석 결과를 참고해주세요."


AGE_GROUP_LABELS: dict[str, str] = {
    "10s": "10대",
    "20s": "20대",
    "30s": "30대",
    "40s": "40대",
    "50s": "50대",
    "60s": "60대 이상",
}

GENDER_LABELS: dict[str, str] = {
    "F": "여자",
    "M": "남자",
    "O": "선택 안 함",
}

DISC_AXIS_LABELS: dict[str, str] = {
    "D": "주도(D)",
    "I": "사교(I)",
    "S": "안정(S)",
    "C": "신중(C)",
}
