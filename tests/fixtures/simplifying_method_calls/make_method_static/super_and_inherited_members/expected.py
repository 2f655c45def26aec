class Base:
    def describe(self):
        return "base"


class Child(Base):
    def _describe_twice(self):
        return super().describe() * 2

    def _inherited(self):
        return self.describe()
