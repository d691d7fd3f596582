from .gateway import EventSink, ToolGateway, ToolResult

__all__ = ["EventSink", "ToolGateway", "ToolResult"]
