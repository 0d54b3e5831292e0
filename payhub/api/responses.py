from flask import jsonify, request


def success(data=None, message=None, status_code=200):
    """Standard envelope: {"success": true, "data": ..., "message": ...}"""
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return jsonify(body), status_code


def paginated(items, pagination):
    return success({"items": items, "pagination": pagination})


def json_body():
    """Request JSON as a dict; a missing or non-object body reads as {}."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
