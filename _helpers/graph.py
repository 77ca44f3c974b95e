# helpers_click.py
def _extract_click(clickData):
    """Returns (label, point_number) of the first clicked pie slice."""
    if not clickData or "points" not in clickData or not clickData["points"]:
        return None, None
    pt = clickData["points"][0]
    label = pt.get("label")
    number = pt.get("pointNumber")
    cd = pt.get("customdata")
    # customdata wins when a renderer passes the slice id explicitly
    if isinstance(cd, dict) and cd.get("label"):
        label = cd["label"]
    elif isinstance(cd, (list, tuple)) and cd and isinstance(cd[0], str):
        label = cd[0]
    return label, number

def _click_label(clickData):
    if not clickData:
        return None
    return _extract_click(clickData)[0]
