"""Module entry point for python -m car_rental_admin."""

from __future__ import annotations

from car_rental_admin.app import main


if __name__ == "__main__":
    raise SystemExit(main())
