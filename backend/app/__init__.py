"""Job board backend: accounts, job listings and resume applications."""
