"""Django project package for the Cancer Companion backend."""
