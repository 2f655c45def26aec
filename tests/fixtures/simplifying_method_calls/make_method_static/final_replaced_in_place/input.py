import typing


class Formatter:
    WIDTH = 10

    # helpers
    @typing.final  # not overridable
    def _wrap(self, text):
        return f"[{text}]"
