"""家庭助手：用药与预约提醒。"""
__version__ = "0.1.0"
