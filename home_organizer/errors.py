"""提醒与通知相关异常。

调度与通知层的异常都在本地消化：解析失败跳过该条目，投递失败只记日志，
不会抛给宿主程序。
"""


class HomeOrganizerError(Exception):
    """家庭助手异常基类。"""


class ReminderParseError(HomeOrganizerError, ValueError):
    """提醒条目的时间无法解析。"""

    def __init__(self, value: object, reason: str = ""):
        self.value = value
        self.reason = reason
        message = f"无法解析时间: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class DeliveryFailure(HomeOrganizerError):
    """通知后端创建或显示通知失败。"""

    def __init__(self, title: str, cause: BaseException):
        self.title = title
        self.cause = cause
        super().__init__(f"通知投递失败: {title!r}: {cause}")
