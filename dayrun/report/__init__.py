from .render import layered, render, render_batch, render_part

__all__ = ["layered", "render", "render_batch", "render_part"]
