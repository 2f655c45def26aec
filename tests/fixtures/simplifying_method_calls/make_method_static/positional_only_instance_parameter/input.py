class Codec:
    def _encode(self, /, text):
        return text.encode()

    def _decode(self, data, /, errors="strict"):
        return data.decode(errors=errors)
