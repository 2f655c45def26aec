class Sequence:
    @staticmethod
    def _fib(n):
        if n < 2:
            return n
        return Sequence._fib(n - 1) + Sequence._fib(n - 2)
