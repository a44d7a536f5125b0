"""Catalog routers - plain CRUD over users, species, weight classes and services"""
