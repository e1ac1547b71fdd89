class Messages:
    """사용자 노출 메시지 (스페인어)"""

    INVALID_AMOUNT = "Por favor, introduce un número positivo válido."
    ANALYSIS_FAILED = "Error al obtener la traducción. Por favor, inténtalo de nuevo."
    INVALID_IMAGE = "No se pudo leer la imagen. Usa una foto JPEG, PNG o WEBP."
    CAMERA_NOT_ACTIVE = "La cámara no está activa."

    CAMERA_PERMISSION_DENIED = (
        "Permiso de cámara denegado. Permite el acceso en la configuración de tu dispositivo."
    )
    CAMERA_NOT_FOUND = "No se encontró una cámara compatible en tu dispositivo."
    CAMERA_NOT_READABLE = "Tu cámara podría estar en uso por otra aplicación."
    CAMERA_OVERCONSTRAINED = "La cámara trasera no está disponible en tu dispositivo."
    CAMERA_PREVIEW_FAILED = "No se pudo iniciar la vista de la cámara. Inténtalo de nuevo."
    CAMERA_UNKNOWN = "Ocurrió un error inesperado con la cámara: {detail}"


class Limits:
    MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB
    MAX_PIXELS = 50_000_000  # 디코딩 전 검사 (휴대폰 고해상도 사진 허용)
    ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")


class Facing:
    ENVIRONMENT = "environment"  # 후면
    USER = "user"  # 전면
