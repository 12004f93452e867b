class ThrottledLogger:
    """Node logger wrapper that lets each key through at most once per period (node clock)."""

    def __init__(self, node):
        self._node = node
        self._last_ns = {}  # key -> last log time in ns

    def _allow(self, key: str, period_s: float) -> bool:
        now_ns = self._node.get_clock().now().nanoseconds
        last = self._last_ns.get(key)
        if last is None or now_ns - last >= int(period_s * 1e9):
            self._last_ns[key] = now_ns
            return True
        return False

    def _emit(self, level: str, period_s: float, msg: str, key: str):
        if self._allow(f"{level}:{key}", period_s):
            getattr(self._node.get_logger(), level)(msg)

    def debug(self, period_s: float, msg: str, key: str = "debug"):
        self._emit("debug", period_s, msg, key)

    def info(self, period_s: float, msg: str, key: str = "info"):
        self._emit("info", period_s, msg, key)

    def warn(self, period_s: float, msg: str, key: str = "warn"):
        self._emit("warn", period_s, msg, key)

    def forget(self, key: str):
        """Let the next message for ``key`` through regardless of period."""
        for k in [k for k in self._last_ns if k.split(":", 1)[1] == key]:
            del self._last_ns[k]
