"""Portfolios, their in-memory storage and their HTTP API."""