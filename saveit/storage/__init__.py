"""Storage - shared record model and serialization helpers"""
