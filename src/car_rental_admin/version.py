"""Version metadata for CarRentalAdmin."""

__app_name__ = "CarRentalAdmin"
__company__ = "Car Rental Back Office"
__version__ = "1.0.0"
