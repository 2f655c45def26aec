class Config:
    DEFAULT = 1

    def _pick(self, Config=None):
        return self.DEFAULT if Config is None else Config
