"""项目内使用的自定义异常定义。"""


class ImageDerivativesError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(ImageDerivativesError):
    """配置或参数不合法时抛出。"""


class PathValidationError(ImageDerivativesError):
    """路径校验失败的基础类型。"""


class InvalidPathError(PathValidationError):
    """路径不是绝对路径。"""


class PathNotFoundError(PathValidationError):
    """路径查询失败（不存在或无权限）。"""


class NotAFileError(PathValidationError):
    """路径存在但不是普通文件。"""


class NotADirError(PathValidationError):
    """路径存在但不是目录。"""


class BadNameError(PathValidationError):
    """文件扩展名或文件名主体为空。"""


class UnsupportedFormatError(ImageDerivativesError):
    """图片真实格式不在 GIF/PNG/JPEG 之内。"""
