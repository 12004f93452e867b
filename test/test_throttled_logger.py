from types import SimpleNamespace

from nav_goal.throttled_logger import ThrottledLogger


class FakeNode:
    def __init__(self):
        self.now_ns = 0
        self.lines = []
        recorder = SimpleNamespace(
            debug=lambda m: self.lines.append(('debug', m)),
            info=lambda m: self.lines.append(('info', m)),
            warn=lambda m: self.lines.append(('warn', m)),
        )
        self._logger = recorder

    def get_clock(self):
        return SimpleNamespace(now=lambda: SimpleNamespace(nanoseconds=self.now_ns))

    def get_logger(self):
        return self._logger


def test_first_message_always_passes():
    node = FakeNode()
    ThrottledLogger(node).warn(1.0, 'lookup failed', key='tf_left')
    assert node.lines == [('warn', 'lookup failed')]


def test_repeats_inside_period_are_dropped():
    node = FakeNode()
    log = ThrottledLogger(node)
    log.info(1.0, 'a', key='goal')
    node.now_ns = int(0.5e9)
    log.info(1.0, 'b', key='goal')
    node.now_ns = int(1.0e9)
    log.info(1.0, 'c', key='goal')
    assert [m for _, m in node.lines] == ['a', 'c']


def test_keys_and_levels_are_independent():
    node = FakeNode()
    log = ThrottledLogger(node)
    log.warn(1.0, 'left', key='tf_left')
    log.warn(1.0, 'right', key='tf_right')
    log.info(1.0, 'info', key='tf_left')
    assert len(node.lines) == 3


def test_forget_lets_next_message_through():
    node = FakeNode()
    log = ThrottledLogger(node)
    log.warn(10.0, 'first', key='tf_left')
    log.forget('tf_left')
    log.warn(10.0, 'second', key='tf_left')
    assert [m for _, m in node.lines] == ['first', 'second']
