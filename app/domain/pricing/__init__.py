"""Pricing domain - calculation engine, pricing catalogue and admin pricing management"""
