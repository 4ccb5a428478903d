# youthblood/context_processors.py
def viewer(request):
    current = getattr(request, "viewer", None)
    return {
        "viewer": current,
        "user_role": current.role if current else "",
    }
