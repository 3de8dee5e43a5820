"""앱 전역 커스텀 예외 클래스.

AppException을 상속하면 전역 핸들러(error_handlers.py)가 자동으로
{"error": "...", "status": 400, "error_code": "..."} 형식의 JSON 응답을 생성한다.
"""


class AppException(Exception):
    """앱 전역 베이스 예외.

    서브클래스에서 status_code, error_code, message를 클래스 변수로 정의하면
    전역 핸들러가 해당 값을 읽어 HTTP 응답을 생성한다.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "서버 내부 오류가 발생했습니다"

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


# --- 입력 검증 ---


class InvalidRequest(AppException):
    status_code = 400
    error_code = "VALIDATION_ERROR"
    message = "요청 값이 올바르지 않습니다"


class UnsupportedContentType(InvalidRequest):
    error_code = "UNSUPPORTED_CONTENT_TYPE"
    message = "지원하지 않는 이미지 형식입니다"


# --- 이미지 레코드 ---


class ImageNotFound(AppException):
    status_code = 404
    error_code = "IMAGE_NOT_FOUND"
    message = "이미지를 찾을 수 없습니다"


class ImageAlreadyExists(AppException):
    # id 충돌은 내부 오류로 취급한다 (클라이언트가 해결할 수 없음)
    status_code = 500
    error_code = "IMAGE_ALREADY_EXISTS"
    message = "이미 존재하는 이미지 ID입니다"


class StatusConflict(AppException):
    """조건부 쓰기가 경쟁에서 진 경우. 별도 HTTP 상태로 노출하지 않는다."""

    status_code = 500
    error_code = "STATUS_CONFLICT"
    message = "이미지 상태가 동시에 변경되었습니다"


class InvalidTransition(StatusConflict):
    error_code = "INVALID_TRANSITION"
    message = "허용되지 않는 상태 전이입니다"


# --- 외부 협력자 ---


class UpstreamUnavailable(AppException):
    status_code = 500
    error_code = "UPSTREAM_ERROR"
    message = "외부 저장소에 접근할 수 없습니다"
