class Greeter:
    def greet(self, name):
        return self._format(name)

    def _format(self, name):
        return "Hello, " + name
