from tidelog.base.sinks.console import ConsoleRenderer, RendererState, RenderOptions

__all__ = ["ConsoleRenderer", "RendererState", "RenderOptions"]
