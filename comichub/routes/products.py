"""Catalog read routes."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..common.utils.validators import ensure_id
from . import components


products_bp = Blueprint("comichub_products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    result = components()["catalog"].list_products(
        query=request.args.get("q"),
        product_type=request.args.get("type"),
        page=request.args.get("page", default=1, type=int),
        page_size=request.args.get("page_size", default=20, type=int),
    )
    return jsonify(result)


@products_bp.get("/<product_id>")
def get_product(product_id: str):
    return jsonify(components()["catalog"].get_product(ensure_id(product_id, "productId")))
