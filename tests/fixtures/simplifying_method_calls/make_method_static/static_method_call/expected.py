class Parser:
    @staticmethod
    def _strip(text):
        return text.strip()

    @classmethod
    def _default(cls):
        return ""

    @staticmethod
    def _clean(text):
        if not text:
            return Parser._default()
        return Parser._strip(text).lower()
