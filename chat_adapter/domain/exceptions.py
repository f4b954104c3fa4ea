"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 API 层或调用方做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "PARSER_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider、原始行等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """Provider 限流错误，由上层负责重试/退避策略。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class ParserError(BusinessError):
    """流式行无法解析为任何已知结构。

    - raw: 原始行内容。
    - recovered: 正则兜底提取到的 content，可能为空字符串，仅供参考。
    """

    def __init__(self, message: str, raw: str = "", recovered: str = ""):
        super().__init__(code="PARSER_ERROR", message=message, http_status=502)
        self.raw = raw
        self.recovered = recovered


class ProviderError(BusinessError):
    """Provider 在流中返回了错误包（error envelope）。"""

    def __init__(self, message: str, error_type: str = ""):
        super().__init__(
            code="PROVIDER_ERROR",
            message=f"openai error: {message} (type: {error_type})",
            http_status=502,
        )
        self.error_type = error_type
        self.provider_message = message


class ReasoningExhaustedError(BusinessError):
    """推理模型在思考阶段就耗尽了输出 token 预算。"""

    def __init__(self):
        super().__init__(
            code="REASONING_EXHAUSTED",
            message=(
                "reasoning model exhausted token limit during thinking phase, "
                "please increase max_tokens setting"
            ),
            http_status=502,
        )


class ImageError(BusinessError):
    """图片地址无法解析或下载。"""
