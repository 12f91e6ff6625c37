"""Command line entry point."""
import os

from app.models import User, Repository
from .utils import slugify

MAX_USERS = 100


def main():
    repo = Repository()
    repo.add(User(os.environ.get("USER", "ada")))
    print(slugify("Hello World"))


if __name__ == "__main__":
    main()
