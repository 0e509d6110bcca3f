"""One of two modules defining ``DuplicateJob``."""


class DuplicateJob:
    def run(self):
        return "a"
