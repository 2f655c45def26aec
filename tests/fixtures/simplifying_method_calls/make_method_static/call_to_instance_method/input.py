class Report:
    def _title(self):
        return "Report"

    def _header(self):
        return self._title().upper()
