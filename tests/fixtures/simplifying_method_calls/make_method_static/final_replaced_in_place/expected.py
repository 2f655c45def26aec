import typing


class Formatter:
    WIDTH = 10

    # helpers
    @staticmethod  # not overridable
    def _wrap(text):
        return f"[{text}]"
