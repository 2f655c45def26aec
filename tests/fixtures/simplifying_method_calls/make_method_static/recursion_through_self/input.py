class Sequence:
    def _fib(self, n):
        if n < 2:
            return n
        return self._fib(n - 1) + self._fib(n - 2)
