# This module contains mathematical functions
# that are used in the PySkewt package.
#
# Requires:
#    Python 3+
#
# History:
#    Linear interpolation between two layers
#    Exact clipping of segments against the unit square used by the diagram
#
# Copyright:
# This module may be freely distributed and used provided this header
# remains attached.


############################################################################
#++++++++++++++++++++++++++++++ FUNCTIONS +++++++++++++++++++++++++++++++++#
############################################################################

#This function interpolates variables between two layers
#It assumes that variables vary linearly with pressure
#Inputs:
# pbot, ptop, pmid, type = float, bottom, top,
# and desired pressure levels respectively.
# varbot, vartop, type = float, bottom and
#top layer of variable to interpolate.
#
#Outputs:
# varmid, float, the interpolated variable.
#
def linear_interp(pbot, ptop, pmid, varbot, vartop):

    #Identical levels have nothing to weight
    if (pbot == ptop):
        return varbot

    #Compute interpolation weight
    alpha = (pmid-pbot)/(ptop-pbot)

    #Interpolate and return
    return alpha*vartop+(1-alpha)*varbot

#Tests whether a point lies in the closed unit square
#Inputs:
# x, y, type = float, the point
# margin, type = float, how far outside the square still counts as inside
#Outputs:
# True or False
def in_unit_square(x, y, margin=0.0):
    return ((-margin <= x <= 1.0+margin) and (-margin <= y <= 1.0+margin))

#Clips a segment against the unit square (Liang-Barsky).
#Endpoints that lie inside the square are returned untouched and
#clipped ends are placed exactly on the edge that cut them.
#Inputs:
# p0, p1, type = tuple of floats, (x, y) ends of the segment
#Outputs:
# (start, end) tuple of (x, y) tuples, or None if the segment misses the square
def clip_segment(p0, p1):

    x0, y0 = p0
    dx = p1[0]-x0
    dy = p1[1]-y0

    #Entry and exit parameters along the segment, with the edge that set them
    t_enter, enter_edge = 0.0, None
    t_exit, exit_edge = 1.0, None
    for (p, q, edge) in ((-dx, x0, (0, 0.0)), (dx, 1.0-x0, (0, 1.0)), (-dy, y0, (1, 0.0)), (dy, 1.0-y0, (1, 1.0))):
        if (p == 0):
            if (q < 0):
                return None
            continue
        t = q/p
        if (p < 0):
            if (t > t_exit):
                return None
            if (t > t_enter):
                t_enter, enter_edge = t, edge
        else:
            if (t < t_enter):
                return None
            if (t < t_exit):
                t_exit, exit_edge = t, edge

    #Build the clipped ends
    if (enter_edge is None):
        start = (x0, y0)
    else:
        start = _on_edge(x0+t_enter*dx, y0+t_enter*dy, enter_edge)
    if (exit_edge is None):
        end = (p1[0], p1[1])
    else:
        end = _on_edge(x0+t_exit*dx, y0+t_exit*dy, exit_edge)

    #Returning
    return (start, end)

#Places a clipped point on its edge, pulling the other coordinate back
#inside when rounding pushed it just past a corner
def _on_edge(x, y, edge):
    axis, value = edge
    if (axis == 0):
        return (value, _snap(y))
    return (_snap(x), value)

def _snap(value):
    return min(1.0, max(0.0, value))
